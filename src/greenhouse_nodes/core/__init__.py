"""Core module for greenhouse node simulation.

This module provides the foundational pieces of the simulation:
- Sensor and actuator value model
- Value objects shared with observers (readings, node info)
- Listener capabilities and fan-out
- Shared task scheduler
- Template registry
- Configuration loading and validation
"""

from greenhouse_nodes.core.base import Actuator, Sensor
from greenhouse_nodes.core.config import GreenhouseConfig, load_config, save_config
from greenhouse_nodes.core.events import (
    ActuatorListener,
    GreenhouseEventListener,
    ListenerSet,
    NodeStateListener,
    SensorListener,
)
from greenhouse_nodes.core.registry import TemplateRegistry
from greenhouse_nodes.core.scheduler import ScheduledTask, Scheduler
from greenhouse_nodes.core.state import SensorActuatorNodeInfo, SensorReading

__all__ = [
    # Devices
    "Sensor",
    "Actuator",
    # Values
    "SensorReading",
    "SensorActuatorNodeInfo",
    # Listeners
    "SensorListener",
    "ActuatorListener",
    "NodeStateListener",
    "GreenhouseEventListener",
    "ListenerSet",
    # Scheduling
    "Scheduler",
    "ScheduledTask",
    # Templates
    "TemplateRegistry",
    # Configuration
    "GreenhouseConfig",
    "load_config",
    "save_config",
]
