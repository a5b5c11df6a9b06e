"""Sensor and actuator value model for greenhouse nodes.

This module defines the two leaf entities of the simulation:
- Sensor: A typed, bounded, noisy measurement source
- Actuator: A typed on/off device that affects sensors of other types

Both are used as templates: a node receives a template and stores
independent clones created with create_clone().
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Protocol

import numpy as np

from greenhouse_nodes.core.state import SensorReading

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from numpy.random import Generator

# Default maximum noise amplitude, as a fraction of the sensor's value span
DEFAULT_NOISE_FRACTION: float = 0.01

_actuator_ids = itertools.count(1)


class ImpactTarget(Protocol):
    """Anything that can receive an actuator impact (usually a node)."""

    def apply_actuator_impact(self, sensor_type: str, impact: float) -> None:
        """Apply impact to all sensors of the given type."""


class Sensor:
    """A sensor holding a single fluctuating measurement.

    The current value always stays within [min_value, max_value]. Random
    noise and external impacts are clamped to those bounds and rounded to
    two decimals.

    Attributes:
        type: Sensor type tag, e.g. "temperature".
        unit: Measurement unit, e.g. "°C".
        current: Current measured value.
        min_value: Lowest possible value.
        max_value: Highest possible value.
        noise_fraction: Maximum noise amplitude per tick as a fraction of
            (max_value - min_value).
    """

    def __init__(
        self,
        sensor_type: str,
        min_value: float,
        max_value: float,
        current: float,
        unit: str,
        *,
        noise_fraction: float = DEFAULT_NOISE_FRACTION,
        rng: Generator | None = None,
        seed: int | None = None,
    ) -> None:
        """Initialize sensor.

        Args:
            sensor_type: Type tag of the sensor.
            min_value: Lowest possible value.
            max_value: Highest possible value.
            current: Initial value; clamped into the bounds.
            unit: Measurement unit.
            noise_fraction: Noise amplitude as a fraction of the value span.
            rng: NumPy random generator for reproducible noise.
            seed: Seed for creating a new random generator if rng is None.

        Raises:
            ValueError: If min_value > max_value or noise_fraction < 0.
        """
        if min_value > max_value:
            msg = f"Sensor min ({min_value}) cannot exceed max ({max_value})"
            raise ValueError(msg)
        if noise_fraction < 0:
            msg = f"Noise fraction must be non-negative, got {noise_fraction}"
            raise ValueError(msg)

        self._type = sensor_type
        self._unit = unit
        self._min = min_value
        self._max = max_value
        self._noise_fraction = noise_fraction
        self._current = self._clamp(current)

        if rng is not None:
            self._rng = rng
        elif seed is not None:
            self._rng = np.random.default_rng(seed)
        else:
            self._rng = np.random.default_rng()

    @property
    def type(self) -> str:
        """Sensor type tag."""
        return self._type

    @property
    def unit(self) -> str:
        """Measurement unit."""
        return self._unit

    @property
    def current(self) -> float:
        """Current measured value."""
        return self._current

    @property
    def min_value(self) -> float:
        """Lowest possible value."""
        return self._min

    @property
    def max_value(self) -> float:
        """Highest possible value."""
        return self._max

    @property
    def noise_fraction(self) -> float:
        """Noise amplitude as a fraction of the value span."""
        return self._noise_fraction

    @property
    def reading(self) -> SensorReading:
        """Snapshot of the current value as an immutable reading."""
        return SensorReading(type=self._type, value=self._current, unit=self._unit)

    def create_clone(self) -> Sensor:
        """Create an independent copy of this sensor.

        The clone shares all static parameters, starts from the same current
        value and draws noise from its own random stream.

        Returns:
            A new Sensor.
        """
        return Sensor(
            self._type,
            self._min,
            self._max,
            self._current,
            self._unit,
            noise_fraction=self._noise_fraction,
            rng=self._rng.spawn(1)[0],
        )

    def add_random_noise(self) -> None:
        """Perturb the current value by a small random delta."""
        amplitude = self._noise_fraction * (self._max - self._min)
        if amplitude > 0:
            delta = float(self._rng.uniform(-amplitude, amplitude))
            self._current = self._clamp(self._current + delta)

    def apply_impact(self, impact: float) -> None:
        """Add an external impact to the current value.

        Args:
            impact: Signed delta to add.
        """
        self._current = self._clamp(self._current + impact)

    def _clamp(self, value: float) -> float:
        return max(self._min, min(self._max, round(value, 2)))

    def __repr__(self) -> str:
        return f"Sensor({self._type!r}, current={self._current}{self._unit})"


class Actuator:
    """An on/off device that affects sensors when toggled.

    Impacts map a sensor type to a signed delta. Switching the actuator on
    applies each delta to the matching sensors, switching it off reverts it.

    Attributes:
        type: Actuator type tag, e.g. "heater".
        on: Whether the actuator is currently on.
        node_id: ID of the owning node, if attached to one.
        actuator_id: Process-unique actuator number.
    """

    def __init__(
        self,
        actuator_type: str,
        node_id: int | None = None,
        *,
        impacts: Mapping[str, float] | None = None,
        on: bool = False,
    ) -> None:
        """Initialize actuator.

        Args:
            actuator_type: Type tag of the actuator.
            node_id: ID of the owning node, None for a detached template.
            impacts: Sensor type -> impact mapping.
            on: Initial state.
        """
        self._type = actuator_type
        self._node_id = node_id
        self._impacts: dict[str, float] = dict(impacts or {})
        self._on = on
        self._id = next(_actuator_ids)

    @property
    def type(self) -> str:
        """Actuator type tag."""
        return self._type

    @property
    def on(self) -> bool:
        """Whether the actuator is on."""
        return self._on

    @property
    def node_id(self) -> int | None:
        """ID of the node this actuator is attached to."""
        return self._node_id

    @node_id.setter
    def node_id(self, value: int | None) -> None:
        self._node_id = value

    @property
    def actuator_id(self) -> int:
        """Process-unique actuator number."""
        return self._id

    @property
    def impacts(self) -> dict[str, float]:
        """Configured impacts per sensor type."""
        return self._impacts.copy()

    def set_impact(self, sensor_type: str, impact: float) -> None:
        """Configure the impact on sensors of a given type.

        Args:
            sensor_type: Affected sensor type.
            impact: Signed delta applied when switching on.
        """
        self._impacts[sensor_type] = impact

    def create_clone(self) -> Actuator:
        """Create a fresh, switched-off copy with the same impacts."""
        return Actuator(self._type, self._node_id, impacts=self._impacts)

    def toggle(self) -> None:
        """Flip the on/off state. Callers are responsible for notification."""
        self._on = not self._on

    def set_on(self, on: bool) -> None:
        """Set the state directly, used to mirror remote actuators."""
        self._on = on

    def apply_impact(self, node: ImpactTarget) -> None:
        """Apply this actuator's impacts to the sensors of a node.

        Args:
            node: Target receiving the impact (usually a SensorActuatorNode).
        """
        for sensor_type, impact in self._impacts.items():
            node.apply_actuator_impact(sensor_type, impact if self._on else -impact)

    def __repr__(self) -> str:
        state = "on" if self._on else "off"
        return f"Actuator({self._type!r}, node={self._node_id}, {state})"
