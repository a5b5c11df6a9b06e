"""Shared pytest fixtures for greenhouse_nodes tests."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

import numpy as np
import pytest

from greenhouse_nodes.core.base import Actuator, Sensor
from greenhouse_nodes.core.scheduler import Scheduler
from greenhouse_nodes.greenhouse.node import SensorActuatorNode

if TYPE_CHECKING:
    from greenhouse_nodes.core.state import SensorActuatorNodeInfo, SensorReading

# Upper bound for waiting on background tasks; tests normally finish far sooner
WAIT_TIMEOUT: float = 5.0


# =============================================================================
# Random number generator fixtures
# =============================================================================


@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random generator for reproducible tests."""
    return np.random.default_rng(42)


# =============================================================================
# Scheduler fixtures
# =============================================================================


@pytest.fixture
def scheduler() -> Iterator[Scheduler]:
    """Scheduler that is shut down after the test."""
    sched = Scheduler(name="test-scheduler")
    yield sched
    sched.shutdown()


# =============================================================================
# Device fixtures
# =============================================================================


@pytest.fixture
def temperature_sensor(rng: np.random.Generator) -> Sensor:
    """Temperature sensor template, 15-40 °C starting at 20 °C."""
    return Sensor("temperature", 15.0, 40.0, 20.0, "°C", rng=rng)


@pytest.fixture
def humidity_sensor(rng: np.random.Generator) -> Sensor:
    """Humidity sensor template, 50-100 % starting at 80 %."""
    return Sensor("humidity", 50.0, 100.0, 80.0, "%", rng=rng)


@pytest.fixture
def heater() -> Actuator:
    """Heater template warming temperature sensors by 4 °C."""
    return Actuator("heater", impacts={"temperature": 4.0})


@pytest.fixture
def window() -> Actuator:
    """Window template cooling by 5 °C and drying by 10 %."""
    return Actuator("window", impacts={"temperature": -5.0, "humidity": -10.0})


@pytest.fixture
def node(
    scheduler: Scheduler, rng: np.random.Generator
) -> Iterator[SensorActuatorNode]:
    """Idle node with ID 1 and no devices; stopped after the test."""
    n = SensorActuatorNode(1, scheduler, rng=rng)
    yield n
    n.stop_simulation()


# =============================================================================
# Recording listeners
# =============================================================================


class RecordingSensorListener:
    """Records every sensor notification."""

    def __init__(self) -> None:
        self.updates: list[list[float]] = []
        self.received = threading.Event()

    def sensors_updated(self, sensors: Sequence[Sensor]) -> None:
        self.updates.append([s.current for s in sensors])
        self.received.set()


class RecordingActuatorListener:
    """Records every actuator notification."""

    def __init__(self) -> None:
        self.updates: list[tuple[str, bool]] = []
        self.received = threading.Event()

    def actuator_updated(self, actuator: Actuator) -> None:
        self.updates.append((actuator.type, actuator.on))
        self.received.set()


class RecordingStateListener:
    """Records node ready/stopped notifications."""

    def __init__(self) -> None:
        self.events: list[tuple[str, int]] = []

    def on_node_ready(self, node: SensorActuatorNode) -> None:
        self.events.append(("ready", node.id))

    def on_node_stopped(self, node: SensorActuatorNode) -> None:
        self.events.append(("stopped", node.id))


class RecordingGreenhouseListener:
    """Records control-panel events; `wait_for(n)` blocks until n arrived."""

    def __init__(self) -> None:
        self.events: list[tuple[object, ...]] = []
        self._condition = threading.Condition()

    def _record(self, *event: object) -> None:
        with self._condition:
            self.events.append(event)
            self._condition.notify_all()

    def wait_for(self, count: int, timeout: float = WAIT_TIMEOUT) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: len(self.events) >= count, timeout)

    def on_node_added(self, node_info: SensorActuatorNodeInfo) -> None:
        self._record("added", node_info)

    def on_node_removed(self, node_id: int) -> None:
        self._record("removed", node_id)

    def on_sensor_data(self, node_id: int, readings: list[SensorReading]) -> None:
        self._record("data", node_id, readings)

    def on_actuator_state_changed(
        self, node_id: int, actuator_type: str, index: int, on: bool
    ) -> None:
        self._record("actuator", node_id, actuator_type, index, on)


@pytest.fixture
def sensor_listener() -> RecordingSensorListener:
    return RecordingSensorListener()


@pytest.fixture
def actuator_listener() -> RecordingActuatorListener:
    return RecordingActuatorListener()


@pytest.fixture
def state_listener() -> RecordingStateListener:
    return RecordingStateListener()


@pytest.fixture
def greenhouse_listener() -> RecordingGreenhouseListener:
    return RecordingGreenhouseListener()
