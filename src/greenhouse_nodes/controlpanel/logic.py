"""Control panel logic.

ControlPanelLogic receives greenhouse events from a communication channel,
keeps track of the nodes it knows about, and forwards events to its own
listeners (for example a GUI or the CLI printer).

Events that refer to unknown nodes are logged and dropped rather than
forwarded, and a node announced twice is only forwarded the first time.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from greenhouse_nodes.controlpanel.fake_channel import FakeCommunicationChannel
from greenhouse_nodes.core.events import GreenhouseEventListener, ListenerSet

if TYPE_CHECKING:
    from greenhouse_nodes.core.scheduler import Scheduler
    from greenhouse_nodes.core.state import SensorActuatorNodeInfo, SensorReading

logger = logging.getLogger(__name__)

# (specification, delay in seconds) of the demo events
FAKE_NODES: list[tuple[str, float]] = [
    ("4;3_window", 2),
    ("1", 3),
    ("1", 4),
    ("8;2_heater", 5),
]
FAKE_SENSOR_DATA: list[tuple[str, float]] = [
    ("4;temperature=27.4 °C,temperature=26.8 °C,humidity=80 %", 4),
    ("4;temperature=22.4 °C,temperature=26.0 °C,humidity=81 %", 9),
    ("4;temperature=25.4 °C,temperature=27.0 °C,humidity=82 %", 14),
    ("1;humidity=80 %,humidity=82 %", 10),
    ("1;temperature=25.4 °C,temperature=27.0 °C,humidity=67 %", 13),
    ("4;temperature=25.4 °C,temperature=27.0 °C,humidity=82 %", 16),
]
FAKE_ACTUATOR_STATES: list[tuple[int, str, int, bool, float]] = [
    (4, "window", 1, True, 6),
    (8, "heater", 0, True, 7),
    (4, "window", 1, False, 8),
]
FAKE_REMOVED_NODES: list[tuple[int, float]] = [
    (8, 11),
    (4, 12),
    (4, 18),
]


class ControlPanelLogic:
    """Central logic of a control panel node.

    Implements the GreenhouseEventListener capability for the channel and
    fans the events out to registered listeners.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        """Initialize control panel logic.

        Args:
            scheduler: Scheduler used by the fake channel.
        """
        self._scheduler = scheduler
        self._listeners: ListenerSet[GreenhouseEventListener] = ListenerSet(
            "control panel listeners"
        )
        self._nodes: dict[int, SensorActuatorNodeInfo] = {}
        self._lock = threading.Lock()

    @property
    def nodes(self) -> dict[int, SensorActuatorNodeInfo]:
        """Copy of the known node ID -> node info mapping."""
        with self._lock:
            return dict(self._nodes)

    def add_listener(self, listener: GreenhouseEventListener) -> None:
        """Register a listener for all events. Adding twice has no effect."""
        self._listeners.add(listener)

    def initiate_fake_events(self, *, time_scale: float = 1.0) -> FakeCommunicationChannel:
        """Schedule the demo sequence of fake events.

        Args:
            time_scale: Multiplier applied to all event delays.

        Returns:
            The channel delivering the events.
        """
        channel = FakeCommunicationChannel(self, self._scheduler)
        for specification, delay in FAKE_NODES:
            channel.spawn_node(specification, delay * time_scale)
        for specification, delay in FAKE_SENSOR_DATA:
            channel.advertise_sensor_data(specification, delay * time_scale)
        for node_id, actuator_type, index, on, delay in FAKE_ACTUATOR_STATES:
            channel.advertise_actuator_state(
                node_id, actuator_type, index, on, delay * time_scale
            )
        for node_id, delay in FAKE_REMOVED_NODES:
            channel.advertise_removed_node(node_id, delay * time_scale)
        return channel

    def on_node_added(self, node_info: SensorActuatorNodeInfo) -> None:
        with self._lock:
            known = node_info.node_id in self._nodes
            if not known:
                self._nodes[node_info.node_id] = node_info
        if known:
            logger.warning("Node %d already known, ignoring", node_info.node_id)
            return
        logger.info("Node %d added", node_info.node_id)
        self._listeners.notify(lambda listener: listener.on_node_added(node_info))

    def on_node_removed(self, node_id: int) -> None:
        with self._lock:
            removed = self._nodes.pop(node_id, None)
        if removed is None:
            logger.debug("Removal of unknown node %d ignored", node_id)
            return
        logger.info("Node %d removed", node_id)
        self._listeners.notify(lambda listener: listener.on_node_removed(node_id))

    def on_sensor_data(self, node_id: int, readings: list[SensorReading]) -> None:
        with self._lock:
            known = node_id in self._nodes
        if not known:
            logger.debug("Sensor data for unknown node %d dropped", node_id)
            return
        self._listeners.notify(lambda listener: listener.on_sensor_data(node_id, readings))

    def on_actuator_state_changed(
        self, node_id: int, actuator_type: str, index: int, on: bool
    ) -> None:
        with self._lock:
            info = self._nodes.get(node_id)
            actuator = info.get_actuator(actuator_type, index) if info else None
            if actuator is not None:
                actuator.set_on(on)
        if actuator is None:
            logger.warning(
                "Actuator %s[%d] on node %d unknown, state change dropped",
                actuator_type,
                index,
                node_id,
            )
            return
        self._listeners.notify(
            lambda listener: listener.on_actuator_state_changed(
                node_id, actuator_type, index, on
            )
        )


def fake_script_duration() -> float:
    """Delay in seconds of the last event in the demo script."""
    delays = [delay for _, delay in FAKE_NODES]
    delays += [delay for _, delay in FAKE_SENSOR_DATA]
    delays += [event[-1] for event in FAKE_ACTUATOR_STATES]
    delays += [delay for _, delay in FAKE_REMOVED_NODES]
    return max(delays)
