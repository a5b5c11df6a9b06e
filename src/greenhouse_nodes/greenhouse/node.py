"""Sensor/actuator node simulation.

A node owns an ordered list of sensors and, per actuator type, an ordered
list of actuators. While simulating, a periodic task on the shared
scheduler adds noise to all sensors and notifies sensor listeners.

All mutation of a node's collections happens under the node's lock.
Listeners are notified after the lock has been released, so a listener
may call back into this or any other node. Actuator toggles hold a
separate toggle lock until their listeners have run, so the impact relay
of one toggle always sees the state that toggle produced.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import numpy as np

from greenhouse_nodes.core.config import DEFAULT_SENSING_INTERVAL
from greenhouse_nodes.core.events import (
    ActuatorListener,
    ListenerSet,
    NodeStateListener,
    SensorListener,
)

if TYPE_CHECKING:
    from numpy.random import Generator

    from greenhouse_nodes.core.base import Actuator, Sensor
    from greenhouse_nodes.core.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class ActuatorNotFoundError(LookupError):
    """No actuator with the requested (type, index) exists on a node."""

    def __init__(self, node_id: int, actuator_type: str, index: int) -> None:
        self.node_id = node_id
        self.actuator_type = actuator_type
        self.index = index
        super().__init__(f"{actuator_type}[{index}] not found on node {node_id}")


class SensorActuatorNode:
    """One simulated node with sensors and actuators.

    The node does not check whether its ID is unique; that is done at the
    greenhouse level.

    Attributes:
        id: Node ID, immutable.
        sensing_interval: Seconds between sensor value updates.
    """

    def __init__(
        self,
        node_id: int,
        scheduler: Scheduler,
        *,
        sensing_interval: float = DEFAULT_SENSING_INTERVAL,
        rng: Generator | None = None,
    ) -> None:
        """Initialize node.

        Args:
            node_id: Unique ID of the node.
            scheduler: Shared scheduler running the sensing task.
            sensing_interval: Seconds between sensor value updates.
            rng: Random generator for the start delay of the sensing task.

        Raises:
            ValueError: If sensing_interval is not positive.
        """
        if sensing_interval <= 0:
            msg = f"Sensing interval must be positive, got {sensing_interval}"
            raise ValueError(msg)
        self._id = node_id
        self._scheduler = scheduler
        self._sensing_interval = sensing_interval
        self._rng = rng if rng is not None else np.random.default_rng()

        self._sensors: list[Sensor] = []
        self._actuators: dict[str, list[Actuator]] = {}
        self._lock = threading.RLock()
        self._toggle_lock = threading.RLock()

        self._sensor_listeners: ListenerSet[SensorListener] = ListenerSet(
            f"sensor listeners of node {node_id}"
        )
        self._actuator_listeners: ListenerSet[ActuatorListener] = ListenerSet(
            f"actuator listeners of node {node_id}"
        )
        self._state_listeners: ListenerSet[NodeStateListener] = ListenerSet(
            f"state listeners of node {node_id}"
        )

        self._sensing_task: ScheduledTask | None = None

    @property
    def id(self) -> int:
        """Node ID."""
        return self._id

    @property
    def sensing_interval(self) -> float:
        """Seconds between sensor value updates."""
        return self._sensing_interval

    @property
    def sensors(self) -> list[Sensor]:
        """Copy of the node's sensor list."""
        with self._lock:
            return list(self._sensors)

    @property
    def actuators(self) -> dict[str, list[Actuator]]:
        """Copy of the actuator type -> actuators mapping."""
        with self._lock:
            return {t: list(a) for t, a in self._actuators.items()}

    @property
    def is_simulating(self) -> bool:
        """Whether the sensing task is running."""
        with self._lock:
            return self._sensing_task is not None

    def add_sensors(self, template: Sensor | None, n: int) -> None:
        """Add sensors to the node.

        Args:
            template: Sensor to clone. It defines the type, value range and
                noise parameters.
            n: Number of sensors to add.

        Raises:
            ValueError: If the template is missing, has no type, or n <= 0.
        """
        if template is None:
            msg = "Sensor template is missing"
            raise ValueError(msg)
        if not template.type:
            msg = "Sensor type missing"
            raise ValueError(msg)
        if n <= 0:
            msg = f"Can't add a non-positive number of sensors: {n}"
            raise ValueError(msg)

        clones = [template.create_clone() for _ in range(n)]
        with self._lock:
            self._sensors.extend(clones)

    def add_actuators(self, template: Actuator | None, n: int) -> None:
        """Add actuators of the template's type to the node.

        Args:
            template: Actuator to clone.
            n: Number of actuators to add.

        Raises:
            ValueError: If the template is missing, has no type, or n <= 0.
        """
        if template is None:
            msg = "Actuator template is missing"
            raise ValueError(msg)
        if not template.type:
            msg = "Actuator type missing"
            raise ValueError(msg)
        if n <= 0:
            msg = f"Can't add a non-positive number of actuators: {n}"
            raise ValueError(msg)

        clones = [template.create_clone() for _ in range(n)]
        for clone in clones:
            clone.node_id = self._id
        with self._lock:
            self._actuators.setdefault(template.type, []).extend(clones)

    def get_actuator(self, actuator_type: str, index: int) -> Actuator | None:
        """Actuator at (type, index), or None if there is none."""
        with self._lock:
            of_type = self._actuators.get(actuator_type)
            if of_type is not None and 0 <= index < len(of_type):
                return of_type[index]
            return None

    def add_sensor_listener(self, listener: SensorListener) -> None:
        """Register a listener for sensor updates. Adding twice has no effect."""
        self._sensor_listeners.add(listener)

    def add_actuator_listener(self, listener: ActuatorListener) -> None:
        """Register a listener for actuator changes. Adding twice has no effect."""
        self._actuator_listeners.add(listener)

    def add_state_listener(self, listener: NodeStateListener) -> None:
        """Register a listener for start/stop of this node."""
        self._state_listeners.add(listener)

    def remove_sensor_listener(self, listener: SensorListener) -> bool:
        """Unregister a sensor listener."""
        return self._sensor_listeners.remove(listener)

    def remove_actuator_listener(self, listener: ActuatorListener) -> bool:
        """Unregister an actuator listener."""
        return self._actuator_listeners.remove(listener)

    def remove_state_listener(self, listener: NodeStateListener) -> bool:
        """Unregister a state listener."""
        return self._state_listeners.remove(listener)

    def start_simulation(self) -> None:
        """Start the periodic sensing task.

        The first tick happens after a random delay in [0, sensing_interval)
        so that nodes started together do not report in lockstep.
        """
        with self._lock:
            if self._sensing_task is not None:
                logger.info("Node %d is already simulating", self._id)
                return
            start_delay = float(self._rng.uniform(0, self._sensing_interval))
            self._sensing_task = self._scheduler.schedule_at_fixed_rate(
                self.generate_new_sensor_values,
                start_delay,
                self._sensing_interval,
                name=f"node-{self._id}-sensing",
            )
        self.open_communication_channel()
        logger.info(
            "Started simulation of node %d (first reading in %.2fs)",
            self._id,
            start_delay,
        )
        self._state_listeners.notify(lambda listener: listener.on_node_ready(self))

    def stop_simulation(self) -> None:
        """Stop the periodic sensing task. Safe to call when not simulating."""
        with self._lock:
            task, self._sensing_task = self._sensing_task, None
        if task is None:
            return
        logger.info("-- Stopping simulation of node %d", self._id)
        task.cancel()
        self.close_communication_channel()
        self._state_listeners.notify(lambda listener: listener.on_node_stopped(self))

    def open_communication_channel(self) -> None:
        """Hook for a network transport. Nodes have none in the simulation."""

    def close_communication_channel(self) -> None:
        """Hook for a network transport. Nodes have none in the simulation."""

    def generate_new_sensor_values(self) -> None:
        """Add noise to all sensors and notify sensor listeners."""
        with self._lock:
            for sensor in self._sensors:
                sensor.add_random_noise()
            sensors = list(self._sensors)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Node #%d %s", self._id, self._describe())
        self._sensor_listeners.notify(lambda listener: listener.sensors_updated(sensors))

    def toggle_actuator(self, actuator_type: str, index: int) -> None:
        """Toggle an actuator and notify actuator listeners.

        Args:
            actuator_type: Type of the actuator.
            index: Index within the actuators of that type, starting at zero.

        Raises:
            ActuatorNotFoundError: If there is no such actuator on this node.
        """
        with self._toggle_lock:
            with self._lock:
                actuator = self.get_actuator(actuator_type, index)
                if actuator is None:
                    raise ActuatorNotFoundError(self._id, actuator_type, index)
                actuator.toggle()
            self._actuator_listeners.notify(
                lambda listener: listener.actuator_updated(actuator)
            )

    def apply_actuator_impact(self, sensor_type: str, impact: float) -> None:
        """Apply an actuator impact to all sensors of the given type.

        Args:
            sensor_type: Type of the affected sensors.
            impact: Signed delta to add to each matching sensor.
        """
        with self._lock:
            for sensor in self._sensors:
                if sensor.type == sensor_type:
                    sensor.apply_impact(impact)

    def _describe(self) -> str:
        values = " ".join(f"{s.current}{s.unit}" for s in self._sensors)
        states = " ".join(
            f"{a.type} {'ON' if a.on else 'off'}"
            for of_type in self._actuators.values()
            for a in of_type
        )
        return f"{values} : {states}"

    def __repr__(self) -> str:
        return f"SensorActuatorNode(id={self._id})"
