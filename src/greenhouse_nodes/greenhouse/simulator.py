"""Greenhouse simulator: the context object a front end works with.

The simulator is constructed explicitly and passed to whichever component
needs it (a GUI, the CLI, a test). Its lifecycle is:

    simulator = GreenhouseSimulator(config)
    simulator.initialize()
    simulator.subscribe_to_lifecycle_updates(listener)
    simulator.start()
    ...
    simulator.stop()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from greenhouse_nodes.core.config import GreenhouseConfig, default_config
from greenhouse_nodes.core.scheduler import Scheduler
from greenhouse_nodes.greenhouse.devices import default_registry
from greenhouse_nodes.greenhouse.greenhouse import Greenhouse
from greenhouse_nodes.greenhouse.node import SensorActuatorNode
from greenhouse_nodes.greenhouse.periodic import PeriodicActuator

if TYPE_CHECKING:
    from greenhouse_nodes.core.events import (
        ActuatorListener,
        NodeStateListener,
        SensorListener,
    )
    from greenhouse_nodes.core.registry import TemplateRegistry

logger = logging.getLogger(__name__)


class GreenhouseSimulator:
    """Builds a greenhouse from configuration and runs it."""

    def __init__(
        self,
        config: GreenhouseConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
    ) -> None:
        """Initialize simulator.

        Args:
            config: Greenhouse layout. Uses default_config() if None.
            scheduler: Shared scheduler. If None, the simulator creates one
                and shuts it down in stop().
        """
        self._config = config or default_config()
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or Scheduler()
        self._greenhouse: Greenhouse | None = None

    @property
    def config(self) -> GreenhouseConfig:
        return self._config

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def greenhouse(self) -> Greenhouse:
        """The simulated greenhouse.

        Raises:
            RuntimeError: If initialize() has not been called.
        """
        if self._greenhouse is None:
            msg = "Simulator not initialized; call initialize() first"
            raise RuntimeError(msg)
        return self._greenhouse

    def initialize(self) -> None:
        """Create all nodes and periodic actuators from the configuration.

        Raises:
            KeyError: If a node refers to an unknown template.
            ValueError: If a template or device count is invalid, or a
                periodic actuator refers to an unknown node.
        """
        config = self._config
        rng = np.random.default_rng(config.seed)
        registry = self._build_registry(rng)

        greenhouse = Greenhouse(config.name)
        for node_config in config.nodes:
            node = SensorActuatorNode(
                node_config.id,
                self._scheduler,
                sensing_interval=config.sensing_interval,
                rng=rng.spawn(1)[0],
            )
            for group in node_config.sensors:
                node.add_sensors(registry.get_sensor(group.template), group.count)
            for group in node_config.actuators:
                node.add_actuators(registry.get_actuator(group.template), group.count)
            greenhouse.add_node(node)

        for driver in config.periodic_actuators:
            node = greenhouse.get_node(driver.node_id)
            if node is None:
                msg = (
                    f"Periodic actuator '{driver.name}' refers to unknown node "
                    f"{driver.node_id}"
                )
                raise ValueError(msg)
            greenhouse.add_periodic_actuator(
                PeriodicActuator(
                    driver.name,
                    node,
                    driver.actuator_type,
                    driver.index,
                    driver.interval,
                    self._scheduler,
                )
            )

        self._greenhouse = greenhouse
        logger.info(
            "Greenhouse '%s' initialized with %d nodes and %d periodic actuators",
            config.name,
            len(config.nodes),
            len(config.periodic_actuators),
        )

    def subscribe_to_lifecycle_updates(self, listener: NodeStateListener) -> None:
        """Register a node-state listener on every node."""
        for node in self.greenhouse.nodes.values():
            node.add_state_listener(listener)

    def subscribe_to_sensor_updates(self, listener: SensorListener) -> None:
        """Register a sensor listener on every node."""
        for node in self.greenhouse.nodes.values():
            node.add_sensor_listener(listener)

    def subscribe_to_actuator_updates(self, listener: ActuatorListener) -> None:
        """Register an actuator listener on every node."""
        for node in self.greenhouse.nodes.values():
            node.add_actuator_listener(listener)

    def start(self) -> None:
        """Start the simulation."""
        self.greenhouse.start_simulation()

    def stop(self) -> None:
        """Stop the simulation and release the scheduler if owned."""
        if self._greenhouse is not None:
            self._greenhouse.stop_simulation()
        if self._owns_scheduler:
            self._scheduler.shutdown()

    def _build_registry(self, rng: np.random.Generator) -> TemplateRegistry:
        registry = default_registry(rng=rng)
        for name, sensor_config in self._config.sensor_templates.items():
            registry.register_sensor(
                name, sensor_config.to_sensor(seed=int(rng.integers(2**32))), replace=True
            )
        for name, actuator_config in self._config.actuator_templates.items():
            registry.register_actuator(name, actuator_config.to_actuator(), replace=True)
        return registry
