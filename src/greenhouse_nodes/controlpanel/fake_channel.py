"""Fake communication channel and the node/sensor mini-protocol.

The fake channel stands in for a network transport during testing. Events
are described as short strings, parsed immediately, and delivered to the
listener after a simulated delay.

Node specification ("4;3_window 1_heater", "1"):

    node-spec      := node-id [";" actuator-group]
    actuator-group := actuator-item (" " actuator-item)*
    actuator-item  := count "_" actuator-type

Sensor data specification ("4;temperature=27.4 °C,humidity=80 %"):

    sensor-spec    := node-id ";" reading ("," reading)*
    reading        := sensor-type "=" number " " unit

Malformed specifications raise ValueError and nothing is scheduled.
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from greenhouse_nodes.core.base import Actuator
from greenhouse_nodes.core.state import SensorActuatorNodeInfo, SensorReading

if TYPE_CHECKING:
    from greenhouse_nodes.core.events import GreenhouseEventListener
    from greenhouse_nodes.core.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def parse_node_spec(specification: str) -> SensorActuatorNodeInfo:
    """Parse a node specification.

    Args:
        specification: e.g. "4;3_window" or "1".

    Returns:
        Node info with one actuator per counted item.

    Raises:
        ValueError: If the specification is malformed.
    """
    if not specification:
        msg = "Node specification can't be empty"
        raise ValueError(msg)
    parts = specification.split(";")
    if len(parts) > 2:
        msg = f"Incorrect specification format: {specification}"
        raise ValueError(msg)
    node_id = _parse_int(parts[0], f"Invalid node ID: {parts[0]}")
    info = SensorActuatorNodeInfo(node_id)
    if len(parts) == 2:
        for item in parts[1].split(" "):
            _parse_actuator_item(item, info)
    return info


def parse_sensor_spec(specification: str) -> tuple[int, list[SensorReading]]:
    """Parse a sensor data specification.

    Args:
        specification: e.g. "4;temperature=27.4 °C,humidity=80 %".

    Returns:
        Tuple of (node ID, readings in specification order).

    Raises:
        ValueError: If the specification is malformed.
    """
    if not specification:
        msg = "Sensor specification can't be empty"
        raise ValueError(msg)
    parts = specification.split(";")
    if len(parts) != 2:
        msg = f"Incorrect specification format: {specification}"
        raise ValueError(msg)
    node_id = _parse_int(parts[0], f"Invalid node ID: {parts[0]}")
    readings = [_parse_reading(reading) for reading in parts[1].split(",")]
    return node_id, readings


def _parse_actuator_item(item: str, info: SensorActuatorNodeInfo) -> None:
    fields = item.split("_")
    if len(fields) != 2 or not fields[1]:
        msg = f"Invalid actuator info format: {item}"
        raise ValueError(msg)
    count = _parse_int(fields[0], f"Invalid actuator count: {fields[0]}")
    if count < 0:
        msg = f"Invalid actuator count: {fields[0]}"
        raise ValueError(msg)
    actuator_type = fields[1]
    for _ in range(count):
        info.add_actuator(Actuator(actuator_type, info.node_id))


def _parse_reading(reading: str) -> SensorReading:
    assignment = reading.split("=")
    if len(assignment) != 2 or not assignment[0]:
        msg = f"Invalid sensor reading specified: {reading}"
        raise ValueError(msg)
    value_parts = assignment[1].split(" ")
    if len(value_parts) != 2 or not value_parts[1]:
        msg = f"Invalid sensor value/unit: {reading}"
        raise ValueError(msg)
    if not _DECIMAL.fullmatch(value_parts[0]):
        msg = f"Invalid sensor value: {value_parts[0]}"
        raise ValueError(msg)
    value = float(value_parts[0])
    if not math.isfinite(value):
        msg = f"Invalid sensor value: {value_parts[0]}"
        raise ValueError(msg)
    return SensorReading(type=assignment[0], value=value, unit=value_parts[1])


def _parse_int(s: str, error_message: str) -> int:
    if not _INTEGER.fullmatch(s):
        raise ValueError(error_message)
    return int(s)


class FakeCommunicationChannel:
    """Emulates node discovery and data delivery over a network.

    Each advertise/spawn call schedules exactly one delayed delivery to the
    listener. Delays are in seconds.
    """

    def __init__(self, listener: GreenhouseEventListener, scheduler: Scheduler) -> None:
        """Initialize fake channel.

        Args:
            listener: Receives the generated events.
            scheduler: Scheduler used for the delayed deliveries.
        """
        self._listener = listener
        self._scheduler = scheduler

    def spawn_node(self, specification: str, delay: float) -> ScheduledTask:
        """Announce a new node after a delay.

        Args:
            specification: Node specification, e.g. "8;2_heater".
            delay: Delay in seconds.

        Returns:
            Handle of the scheduled delivery.

        Raises:
            ValueError: If the specification is malformed or delay negative.
        """
        _check_delay(delay)
        node_info = parse_node_spec(specification)
        return self._scheduler.schedule(
            lambda: self._listener.on_node_added(node_info),
            delay,
            name=f"spawn node {node_info.node_id}",
        )

    def advertise_sensor_data(self, specification: str, delay: float) -> ScheduledTask:
        """Announce sensor readings after a delay.

        Args:
            specification: Sensor specification, e.g. "4;temperature=27.4 °C".
            delay: Delay in seconds.

        Returns:
            Handle of the scheduled delivery.

        Raises:
            ValueError: If the specification is malformed or delay negative.
        """
        _check_delay(delay)
        node_id, readings = parse_sensor_spec(specification)
        return self._scheduler.schedule(
            lambda: self._listener.on_sensor_data(node_id, readings),
            delay,
            name=f"sensor data for node {node_id}",
        )

    def advertise_removed_node(self, node_id: int, delay: float) -> ScheduledTask:
        """Announce that a node is gone after a delay."""
        _check_delay(delay)
        return self._scheduler.schedule(
            lambda: self._listener.on_node_removed(node_id),
            delay,
            name=f"remove node {node_id}",
        )

    def advertise_actuator_state(
        self,
        node_id: int,
        actuator_type: str,
        index: int,
        on: bool,
        delay: float,
    ) -> ScheduledTask:
        """Announce an actuator state change after a delay.

        Args:
            node_id: ID of the node the actuator is attached to.
            actuator_type: Type of the actuator, e.g. "window".
            index: Index among actuators of the same type, starting at zero.
            on: New state.
            delay: Delay in seconds.
        """
        _check_delay(delay)
        return self._scheduler.schedule(
            lambda: self._listener.on_actuator_state_changed(
                node_id, actuator_type, index, on
            ),
            delay,
            name=f"{actuator_type}[{index}] on node {node_id}",
        )


def _check_delay(delay: float) -> None:
    if delay < 0:
        msg = f"Delay must be non-negative, got {delay}"
        raise ValueError(msg)
