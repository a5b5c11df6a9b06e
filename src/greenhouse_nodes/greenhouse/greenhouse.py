"""Greenhouse: the collection of nodes and periodic actuators.

The greenhouse listens to actuator changes on all of its nodes and relays
each change to every node, so that for example a heater on one node warms
up the temperature sensors on all nodes. There is no zone model: every
actuator affects every node.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from greenhouse_nodes.core.base import Actuator
    from greenhouse_nodes.greenhouse.node import SensorActuatorNode
    from greenhouse_nodes.greenhouse.periodic import PeriodicActuator

logger = logging.getLogger(__name__)


class Greenhouse:
    """A greenhouse with sensor/actuator nodes inside."""

    def __init__(self, name: str = "Greenhouse") -> None:
        self._name = name
        self._nodes: dict[int, SensorActuatorNode] = {}
        self._periodic_actuators: list[PeriodicActuator] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        """Greenhouse name."""
        return self._name

    @property
    def nodes(self) -> dict[int, SensorActuatorNode]:
        """Copy of the node ID -> node mapping."""
        with self._lock:
            return dict(self._nodes)

    @property
    def periodic_actuators(self) -> list[PeriodicActuator]:
        """Copy of the periodic actuator list."""
        with self._lock:
            return list(self._periodic_actuators)

    def get_node(self, node_id: int) -> SensorActuatorNode | None:
        """Node with the given ID, or None."""
        with self._lock:
            return self._nodes.get(node_id)

    def add_node(self, node: SensorActuatorNode) -> None:
        """Add a node, replacing any node with the same ID.

        The greenhouse registers itself as an actuator listener on the node.

        Args:
            node: The node to add. Callers must ensure IDs are unique.
        """
        with self._lock:
            previous = self._nodes.get(node.id)
            self._nodes[node.id] = node
        if previous is not None and previous is not node:
            logger.warning("Node %d replaced in %s", node.id, self._name)
        node.add_actuator_listener(self)

    def add_periodic_actuator(self, periodic_actuator: PeriodicActuator) -> None:
        """Add a periodic actuator driver."""
        with self._lock:
            self._periodic_actuators.append(periodic_actuator)

    def start_simulation(self) -> None:
        """Start simulating all nodes and periodic actuators."""
        logger.info("Starting simulation of %s", self._name)
        for node in self.nodes.values():
            node.start_simulation()
        for periodic_actuator in self.periodic_actuators:
            periodic_actuator.start()

    def stop_simulation(self) -> None:
        """Stop simulating all nodes and periodic actuators."""
        logger.info("Stopping simulation of %s...", self._name)
        for node in self.nodes.values():
            node.stop_simulation()
        for periodic_actuator in self.periodic_actuators:
            periodic_actuator.stop()

    def actuator_updated(self, actuator: Actuator) -> None:
        """Relay an actuator change to every node in the greenhouse.

        Args:
            actuator: The actuator that changed state.
        """
        for node in self.nodes.values():
            actuator.apply_impact(node)

    def __repr__(self) -> str:
        return f"Greenhouse({self._name!r}, nodes={sorted(self.nodes)})"
