"""Named sensor and actuator templates.

Nodes are populated by cloning templates. The registry keeps templates by
name so that configuration files can refer to them:

    registry = TemplateRegistry()
    registry.register_sensor("temperature", temperature_template)
    node.add_sensors(registry.get_sensor("temperature"), 2)

Template names usually equal the template's type tag, but need not
(e.g. "hot_house_temperature" may be a temperature sensor with other bounds).
"""

from __future__ import annotations

import logging

from greenhouse_nodes.core.base import Actuator, Sensor

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Registry of sensor and actuator templates keyed by name."""

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._sensors: dict[str, Sensor] = {}
        self._actuators: dict[str, Actuator] = {}

    def register_sensor(
        self, name: str, template: Sensor, *, replace: bool = False
    ) -> Sensor:
        """Register a sensor template.

        Args:
            name: Template name.
            template: The sensor to clone from.
            replace: Allow overwriting an existing template of that name.

        Returns:
            The registered template.

        Raises:
            ValueError: If the name is empty or already taken and replace is False.
        """
        _check_name(name, self._sensors, "Sensor", replace=replace)
        self._sensors[name] = template
        return template

    def register_actuator(
        self, name: str, template: Actuator, *, replace: bool = False
    ) -> Actuator:
        """Register an actuator template.

        Args:
            name: Template name.
            template: The actuator to clone from.
            replace: Allow overwriting an existing template of that name.

        Returns:
            The registered template.

        Raises:
            ValueError: If the name is empty or already taken and replace is False.
        """
        _check_name(name, self._actuators, "Actuator", replace=replace)
        self._actuators[name] = template
        return template

    def get_sensor(self, name: str) -> Sensor:
        """Get a sensor template.

        Raises:
            KeyError: If no sensor template has that name.
        """
        if name not in self._sensors:
            msg = f"Unknown sensor template '{name}'. Available: {self.sensor_names()}"
            raise KeyError(msg)
        return self._sensors[name]

    def get_actuator(self, name: str) -> Actuator:
        """Get an actuator template.

        Raises:
            KeyError: If no actuator template has that name.
        """
        if name not in self._actuators:
            msg = (
                f"Unknown actuator template '{name}'. "
                f"Available: {self.actuator_names()}"
            )
            raise KeyError(msg)
        return self._actuators[name]

    def sensor_names(self) -> list[str]:
        """Names of all sensor templates."""
        return list(self._sensors)

    def actuator_names(self) -> list[str]:
        """Names of all actuator templates."""
        return list(self._actuators)

    def list_all(self) -> dict[str, list[str]]:
        """Dict mapping 'sensor'/'actuator' to template names."""
        return {"sensor": self.sensor_names(), "actuator": self.actuator_names()}

    def clear(self) -> None:
        """Remove all templates."""
        self._sensors.clear()
        self._actuators.clear()


def _check_name(
    name: str, existing: dict[str, object], kind: str, *, replace: bool
) -> None:
    if not name:
        msg = f"{kind} template name can't be empty"
        raise ValueError(msg)
    if name in existing:
        if not replace:
            msg = f"{kind} template '{name}' already registered"
            raise ValueError(msg)
        logger.debug("Replacing %s template '%s'", kind.lower(), name)
