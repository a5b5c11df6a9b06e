"""Greenhouse simulation: nodes, periodic actuators and the simulator."""

from greenhouse_nodes.greenhouse.devices import create_node, default_registry
from greenhouse_nodes.greenhouse.greenhouse import Greenhouse
from greenhouse_nodes.greenhouse.node import ActuatorNotFoundError, SensorActuatorNode
from greenhouse_nodes.greenhouse.periodic import PeriodicActuator
from greenhouse_nodes.greenhouse.simulator import GreenhouseSimulator

__all__ = [
    "ActuatorNotFoundError",
    "Greenhouse",
    "GreenhouseSimulator",
    "PeriodicActuator",
    "SensorActuatorNode",
    "create_node",
    "default_registry",
]
