"""Built-in sensor and actuator templates and node construction helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from greenhouse_nodes.core.base import Actuator, Sensor
from greenhouse_nodes.core.config import DEFAULT_SENSING_INTERVAL
from greenhouse_nodes.core.registry import TemplateRegistry
from greenhouse_nodes.greenhouse.node import SensorActuatorNode

if TYPE_CHECKING:
    from numpy.random import Generator

    from greenhouse_nodes.core.scheduler import Scheduler

TEMPERATURE = "temperature"
HUMIDITY = "humidity"
WINDOW = "window"
FAN = "fan"
HEATER = "heater"

# Temperature sensor range and start value (°C)
TEMPERATURE_MIN: float = 15.0
TEMPERATURE_MAX: float = 40.0
TEMPERATURE_NORMAL: float = 20.0

# Relative humidity sensor range and start value (%)
HUMIDITY_MIN: float = 50.0
HUMIDITY_MAX: float = 100.0
HUMIDITY_NORMAL: float = 80.0

# Impacts applied when an actuator is switched on
WINDOW_TEMPERATURE_IMPACT: float = -5.0
WINDOW_HUMIDITY_IMPACT: float = -10.0
FAN_TEMPERATURE_IMPACT: float = -1.0
HEATER_TEMPERATURE_IMPACT: float = 4.0


def create_temperature_sensor(*, rng: Generator | None = None) -> Sensor:
    """Typical greenhouse air temperature sensor."""
    return Sensor(
        TEMPERATURE, TEMPERATURE_MIN, TEMPERATURE_MAX, TEMPERATURE_NORMAL, "°C", rng=rng
    )


def create_humidity_sensor(*, rng: Generator | None = None) -> Sensor:
    """Typical greenhouse relative humidity sensor."""
    return Sensor(HUMIDITY, HUMIDITY_MIN, HUMIDITY_MAX, HUMIDITY_NORMAL, "%", rng=rng)


def create_window() -> Actuator:
    """Window: opening it cools and dries the air."""
    window = Actuator(WINDOW)
    window.set_impact(TEMPERATURE, WINDOW_TEMPERATURE_IMPACT)
    window.set_impact(HUMIDITY, WINDOW_HUMIDITY_IMPACT)
    return window


def create_fan() -> Actuator:
    """Fan: running it cools the air slightly."""
    fan = Actuator(FAN)
    fan.set_impact(TEMPERATURE, FAN_TEMPERATURE_IMPACT)
    return fan


def create_heater() -> Actuator:
    """Heater: running it warms the air."""
    heater = Actuator(HEATER)
    heater.set_impact(TEMPERATURE, HEATER_TEMPERATURE_IMPACT)
    return heater


def default_registry(*, rng: Generator | None = None) -> TemplateRegistry:
    """Registry holding the built-in templates.

    Args:
        rng: Random generator for the sensor templates. Clones spawn their
            own streams from it.

    Returns:
        Registry with temperature/humidity sensors and window/fan/heater
        actuators, each registered under its type name.
    """
    registry = TemplateRegistry()
    registry.register_sensor(TEMPERATURE, create_temperature_sensor(rng=rng))
    registry.register_sensor(HUMIDITY, create_humidity_sensor(rng=rng))
    registry.register_actuator(WINDOW, create_window())
    registry.register_actuator(FAN, create_fan())
    registry.register_actuator(HEATER, create_heater())
    return registry


def create_node(
    node_id: int,
    scheduler: Scheduler,
    *,
    temperature: int = 0,
    humidity: int = 0,
    windows: int = 0,
    fans: int = 0,
    heaters: int = 0,
    sensing_interval: float = DEFAULT_SENSING_INTERVAL,
    registry: TemplateRegistry | None = None,
) -> SensorActuatorNode:
    """Create a node with the given number of built-in devices.

    Zero counts are skipped.

    Args:
        node_id: ID of the new node.
        scheduler: Shared scheduler for the node's sensing task.
        temperature: Number of temperature sensors.
        humidity: Number of humidity sensors.
        windows: Number of window actuators.
        fans: Number of fan actuators.
        heaters: Number of heater actuators.
        sensing_interval: Seconds between sensor updates.
        registry: Template source; built-in templates if None.

    Returns:
        The new node, not yet simulating.
    """
    registry = registry or default_registry()
    node = SensorActuatorNode(node_id, scheduler, sensing_interval=sensing_interval)
    for name, count in ((TEMPERATURE, temperature), (HUMIDITY, humidity)):
        if count > 0:
            node.add_sensors(registry.get_sensor(name), count)
    for name, count in ((WINDOW, windows), (FAN, fans), (HEATER, heaters)):
        if count > 0:
            node.add_actuators(registry.get_actuator(name), count)
    return node
