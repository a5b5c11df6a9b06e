"""Listener capabilities and listener fan-out for greenhouse nodes.

Observers subscribe by implementing one of the capability protocols below;
no base class is required. Any object with the listed methods qualifies.

- SensorListener: New sensor values on a node
- ActuatorListener: An actuator on a node changed state
- NodeStateListener: A node started or stopped simulating
- GreenhouseEventListener: Control-panel side events (node added/removed,
  sensor data, remote actuator state)

ListenerSet implements idempotent registration and safe notification.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from greenhouse_nodes.core.base import Actuator, Sensor
    from greenhouse_nodes.core.state import SensorActuatorNodeInfo, SensorReading
    from greenhouse_nodes.greenhouse.node import SensorActuatorNode

logger = logging.getLogger(__name__)

L = TypeVar("L")


@runtime_checkable
class SensorListener(Protocol):
    """Receives the full sensor list of a node after every sensing tick."""

    def sensors_updated(self, sensors: Sequence[Sensor]) -> None:
        """Sensor values have been refreshed.

        Args:
            sensors: Current sensors of the node. Listeners must not mutate
                the sequence or assume exclusive ownership of it.
        """


@runtime_checkable
class ActuatorListener(Protocol):
    """Receives actuator state changes."""

    def actuator_updated(self, actuator: Actuator) -> None:
        """An actuator has been toggled.

        Args:
            actuator: The actuator, already in its new state.
        """


@runtime_checkable
class NodeStateListener(Protocol):
    """Receives node lifecycle changes within the simulation."""

    def on_node_ready(self, node: SensorActuatorNode) -> None:
        """Node has started simulating."""

    def on_node_stopped(self, node: SensorActuatorNode) -> None:
        """Node has stopped simulating."""


@runtime_checkable
class GreenhouseEventListener(Protocol):
    """Receives greenhouse events on the control-panel side."""

    def on_node_added(self, node_info: SensorActuatorNodeInfo) -> None:
        """A node has appeared on the network."""

    def on_node_removed(self, node_id: int) -> None:
        """A node has left the network. Unknown IDs must be tolerated."""

    def on_sensor_data(self, node_id: int, readings: list[SensorReading]) -> None:
        """New sensor readings from a node."""

    def on_actuator_state_changed(
        self, node_id: int, actuator_type: str, index: int, on: bool
    ) -> None:
        """An actuator on a remote node changed state."""


class ListenerSet(Generic[L]):
    """Ordered, idempotent collection of listeners.

    Registration and notification may happen from different threads.
    Notification iterates over a snapshot, so listeners added during a
    notification only receive later ones. Listener exceptions are logged
    and do not prevent other listeners from being called.
    """

    def __init__(self, name: str = "listeners") -> None:
        """Initialize empty listener set.

        Args:
            name: Label used in log messages.
        """
        self._name = name
        self._listeners: list[L] = []
        self._lock = threading.Lock()

    def add(self, listener: L) -> bool:
        """Register a listener.

        Args:
            listener: The listener to add.

        Returns:
            True if added, False if it was already registered.
        """
        with self._lock:
            if listener in self._listeners:
                return False
            self._listeners.append(listener)
            return True

    def remove(self, listener: L) -> bool:
        """Unregister a listener.

        Returns:
            True if the listener was found and removed.
        """
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
            return False

    def notify(self, callback: Callable[[L], None]) -> None:
        """Invoke callback for every registered listener.

        Args:
            callback: Called once per listener, with the listener as argument.
        """
        for listener in self.snapshot():
            try:
                callback(listener)
            except Exception:
                logger.exception(
                    "Listener %r failed while notifying %s", listener, self._name
                )

    def snapshot(self) -> list[L]:
        """Copy of the registered listeners."""
        with self._lock:
            return list(self._listeners)

    def clear(self) -> None:
        """Remove all listeners."""
        with self._lock:
            self._listeners.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def __contains__(self, listener: object) -> bool:
        with self._lock:
            return listener in self._listeners

    def __iter__(self) -> Iterator[L]:
        return iter(self.snapshot())
