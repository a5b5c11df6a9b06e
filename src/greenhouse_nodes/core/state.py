"""Value objects passed between the simulation and its observers.

- SensorReading: An immutable (type, value, unit) triple
- SensorActuatorNodeInfo: A lightweight, transport-friendly projection of
  a node (its ID and actuators) without live simulation behavior
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from greenhouse_nodes.core.base import Actuator


@dataclass(frozen=True)
class SensorReading:
    """A single sensor measurement.

    Attributes:
        type: Sensor type, e.g. "temperature".
        value: Measured value.
        unit: Measurement unit, e.g. "°C".
    """

    type: str
    value: float
    unit: str

    def formatted(self) -> str:
        """Human-readable value with unit, e.g. '27.4 °C'."""
        return f"{self.value:g} {self.unit}"

    def __str__(self) -> str:
        return f"{self.type}={self.formatted()}"


@dataclass
class SensorActuatorNodeInfo:
    """Information about a sensor/actuator node as seen by a control panel.

    Attributes:
        node_id: Unique node ID.
        actuators: Actuator type -> actuators of that type, in index order.
    """

    node_id: int
    actuators: dict[str, list[Actuator]] = field(default_factory=dict)

    def add_actuator(self, actuator: Actuator) -> None:
        """Append an actuator to the list for its type."""
        self.actuators.setdefault(actuator.type, []).append(actuator)

    def get_actuators(self, actuator_type: str) -> list[Actuator]:
        """Actuators of one type (empty list if none)."""
        return list(self.actuators.get(actuator_type, []))

    def get_actuator(self, actuator_type: str, index: int) -> Actuator | None:
        """Actuator at (type, index), or None if there is no such actuator."""
        of_type = self.actuators.get(actuator_type, [])
        if 0 <= index < len(of_type):
            return of_type[index]
        return None

    def actuator_count(self, actuator_type: str | None = None) -> int:
        """Number of actuators of a type, or of all types when type is None."""
        if actuator_type is None:
            return sum(len(a) for a in self.actuators.values())
        return len(self.actuators.get(actuator_type, []))

    def __iter__(self) -> Iterator[Actuator]:
        for of_type in self.actuators.values():
            yield from of_type
