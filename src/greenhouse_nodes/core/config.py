"""Pydantic configuration models for greenhouse node simulation.

This module defines the configuration schema for a simulated greenhouse
using Pydantic v2 models. Configuration can be loaded from YAML or JSON files.

The configuration hierarchy:
- GreenhouseConfig (top-level)
  - SensorTemplateConfig{} (extra sensor templates, by name)
  - ActuatorTemplateConfig{} (extra actuator templates, by name)
  - NodeConfig[]
    - DeviceGroupConfig[] (sensors)
    - DeviceGroupConfig[] (actuators)
  - PeriodicActuatorConfig[]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from greenhouse_nodes.core.base import DEFAULT_NOISE_FRACTION, Actuator, Sensor

# How often nodes generate new sensor values, in seconds
DEFAULT_SENSING_INTERVAL: float = 5.0


class SensorTemplateConfig(BaseModel):
    """Sensor template configuration."""

    model_config = ConfigDict(frozen=True)

    type: Annotated[str, Field(min_length=1, description="Sensor type tag")]
    unit: str = Field(description="Measurement unit")
    min_value: float
    max_value: float
    current: float = Field(description="Initial value")
    noise_fraction: Annotated[float, Field(ge=0, le=1)] = DEFAULT_NOISE_FRACTION

    @model_validator(mode="after")
    def validate_bounds(self) -> SensorTemplateConfig:
        """Ensure min <= current <= max."""
        if self.min_value > self.max_value:
            msg = f"min_value ({self.min_value}) cannot exceed max_value ({self.max_value})"
            raise ValueError(msg)
        if not self.min_value <= self.current <= self.max_value:
            msg = (
                f"current ({self.current}) outside "
                f"[{self.min_value}, {self.max_value}]"
            )
            raise ValueError(msg)
        return self

    def to_sensor(self, *, seed: int | None = None) -> Sensor:
        """Convert to a Sensor template."""
        return Sensor(
            self.type,
            self.min_value,
            self.max_value,
            self.current,
            self.unit,
            noise_fraction=self.noise_fraction,
            seed=seed,
        )


class ActuatorTemplateConfig(BaseModel):
    """Actuator template configuration."""

    model_config = ConfigDict(frozen=True)

    type: Annotated[str, Field(min_length=1, description="Actuator type tag")]
    impacts: dict[str, float] = Field(
        default_factory=dict,
        description="Mapping: sensor type -> impact when switched on",
    )

    def to_actuator(self) -> Actuator:
        """Convert to an Actuator template."""
        return Actuator(self.type, impacts=self.impacts)


class DeviceGroupConfig(BaseModel):
    """A number of identical devices cloned from one template."""

    model_config = ConfigDict(frozen=True)

    template: Annotated[str, Field(min_length=1, description="Template name")]
    count: Annotated[int, Field(gt=0)] = 1


class NodeConfig(BaseModel):
    """Sensor/actuator node configuration."""

    id: int = Field(description="Unique node ID")
    sensors: list[DeviceGroupConfig] = Field(default_factory=list)
    actuators: list[DeviceGroupConfig] = Field(default_factory=list)


class PeriodicActuatorConfig(BaseModel):
    """Driver that toggles one actuator on a fixed interval."""

    name: Annotated[str, Field(min_length=1)]
    node_id: int
    actuator_type: Annotated[str, Field(min_length=1)]
    index: Annotated[int, Field(ge=0)] = 0
    interval: Annotated[float, Field(gt=0, description="Seconds between toggles")]


class GreenhouseConfig(BaseModel):
    """Top-level greenhouse configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="Greenhouse")
    sensing_interval: Annotated[float, Field(gt=0)] = DEFAULT_SENSING_INTERVAL
    seed: int | None = Field(default=None, description="Seed for reproducible noise")

    sensor_templates: dict[str, SensorTemplateConfig] = Field(default_factory=dict)
    actuator_templates: dict[str, ActuatorTemplateConfig] = Field(default_factory=dict)

    nodes: list[NodeConfig] = Field(default_factory=list)
    periodic_actuators: list[PeriodicActuatorConfig] = Field(default_factory=list)

    @field_validator("nodes", mode="after")
    @classmethod
    def validate_unique_ids(cls, v: list[NodeConfig]) -> list[NodeConfig]:
        """Ensure all node IDs are unique."""
        ids = [n.id for n in v]
        if len(ids) != len(set(ids)):
            duplicates = {i for i in ids if ids.count(i) > 1}
            msg = f"Duplicate node IDs: {duplicates}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_periodic_targets(self) -> GreenhouseConfig:
        """Ensure periodic actuators refer to configured nodes."""
        ids = {n.id for n in self.nodes}
        for driver in self.periodic_actuators:
            if driver.node_id not in ids:
                msg = f"Periodic actuator '{driver.name}' targets unknown node {driver.node_id}"
                raise ValueError(msg)
        return self


def default_config() -> GreenhouseConfig:
    """The demo greenhouse: three nodes and two periodic actuators."""
    return GreenhouseConfig(
        name="Demo greenhouse",
        nodes=[
            NodeConfig(
                id=1,
                sensors=[
                    DeviceGroupConfig(template="temperature", count=1),
                    DeviceGroupConfig(template="humidity", count=2),
                ],
                actuators=[DeviceGroupConfig(template="window", count=1)],
            ),
            NodeConfig(
                id=2,
                sensors=[DeviceGroupConfig(template="temperature", count=1)],
                actuators=[
                    DeviceGroupConfig(template="fan", count=2),
                    DeviceGroupConfig(template="heater", count=1),
                ],
            ),
            NodeConfig(
                id=3,
                sensors=[DeviceGroupConfig(template="temperature", count=2)],
            ),
        ],
        periodic_actuators=[
            PeriodicActuatorConfig(
                name="Window DJ", node_id=1, actuator_type="window", interval=20.0
            ),
            PeriodicActuatorConfig(
                name="Heater DJ", node_id=2, actuator_type="heater", interval=8.0
            ),
        ],
    )


def load_config(path: str | Path) -> GreenhouseConfig:
    """Load greenhouse configuration from YAML or JSON file.

    Args:
        path: Path to configuration file.

    Returns:
        Validated GreenhouseConfig object.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If configuration is invalid.
    """
    path = Path(path)

    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open(encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    return GreenhouseConfig.model_validate(data)


def save_config(config: GreenhouseConfig, path: str | Path) -> None:
    """Save greenhouse configuration to YAML or JSON file.

    Args:
        config: Configuration to save.
        path: Output file path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_none=True)

    with path.open("w", encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            json.dump(data, f, indent=2, ensure_ascii=False)


def validate_config(data: dict[str, Any]) -> GreenhouseConfig:
    """Validate configuration data without loading from file.

    Raises:
        ValueError: If configuration is invalid.
    """
    return GreenhouseConfig.model_validate(data)
