"""Tests for Greenhouse and the actuator impact relay."""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

import numpy as np
import pytest

from greenhouse_nodes.core.base import Actuator, Sensor
from greenhouse_nodes.greenhouse.greenhouse import Greenhouse
from greenhouse_nodes.greenhouse.node import SensorActuatorNode
from greenhouse_nodes.greenhouse.periodic import PeriodicActuator

if TYPE_CHECKING:
    from conftest import RecordingStateListener

    from greenhouse_nodes.core.scheduler import Scheduler

WAIT = 5.0


def quiet_temperature_sensor() -> Sensor:
    """Temperature sensor without noise, so impacts are exact."""
    return Sensor("temperature", 15.0, 40.0, 20.0, "°C", noise_fraction=0.0)


@pytest.fixture
def greenhouse(scheduler: Scheduler, heater: Actuator, window: Actuator) -> Greenhouse:
    """Greenhouse with three nodes: heater on node 2, window on node 1."""
    gh = Greenhouse("Test house")
    rng = np.random.default_rng(0)
    for node_id in (1, 2, 3):
        node = SensorActuatorNode(node_id, scheduler, rng=rng.spawn(1)[0])
        node.add_sensors(quiet_temperature_sensor(), 1)
        gh.add_node(node)
    gh.get_node(1).add_actuators(window, 1)
    gh.get_node(2).add_actuators(heater, 1)
    return gh


def temperatures(greenhouse: Greenhouse) -> dict[int, float]:
    return {
        node_id: node.sensors[0].current for node_id, node in greenhouse.nodes.items()
    }


class TestGreenhouse:
    """Tests for node management."""

    def test_nodes(self, greenhouse: Greenhouse) -> None:
        """Nodes are retrievable by ID."""
        assert greenhouse.name == "Test house"
        assert sorted(greenhouse.nodes) == [1, 2, 3]
        assert greenhouse.get_node(2).id == 2
        assert greenhouse.get_node(9) is None

    def test_replace_node(
        self,
        greenhouse: Greenhouse,
        scheduler: Scheduler,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A node with an existing ID replaces the old one with a warning."""
        replacement = SensorActuatorNode(2, scheduler)

        with caplog.at_level(logging.WARNING):
            greenhouse.add_node(replacement)

        assert greenhouse.get_node(2) is replacement
        assert "Node 2 replaced" in caplog.text

    def test_start_and_stop(
        self,
        greenhouse: Greenhouse,
        scheduler: Scheduler,
        state_listener: RecordingStateListener,
    ) -> None:
        """Start and stop fan out to every node and driver."""
        driver = PeriodicActuator(
            "Heater DJ", greenhouse.get_node(2), "heater", 0, 60.0, scheduler
        )
        greenhouse.add_periodic_actuator(driver)
        for node in greenhouse.nodes.values():
            node.add_state_listener(state_listener)

        greenhouse.start_simulation()
        assert all(n.is_simulating for n in greenhouse.nodes.values())
        assert driver.is_running

        greenhouse.stop_simulation()
        assert not any(n.is_simulating for n in greenhouse.nodes.values())
        assert not driver.is_running
        assert sorted(state_listener.events) == [
            ("ready", 1),
            ("ready", 2),
            ("ready", 3),
            ("stopped", 1),
            ("stopped", 2),
            ("stopped", 3),
        ]
        assert greenhouse.periodic_actuators == [driver]


class TestImpactRelay:
    """Actuator changes on one node affect sensors on every node."""

    def test_heater_warms_all_nodes(self, greenhouse: Greenhouse) -> None:
        """Switching the heater on raises temperature everywhere."""
        greenhouse.get_node(2).toggle_actuator("heater", 0)

        assert temperatures(greenhouse) == {1: 24.0, 2: 24.0, 3: 24.0}

    def test_heater_off_reverts(self, greenhouse: Greenhouse) -> None:
        """Switching it off again restores the previous values."""
        node = greenhouse.get_node(2)
        node.toggle_actuator("heater", 0)
        node.toggle_actuator("heater", 0)

        assert temperatures(greenhouse) == {1: 20.0, 2: 20.0, 3: 20.0}

    def test_window_and_heater_combine(self, greenhouse: Greenhouse) -> None:
        """Impacts of different actuators add up."""
        greenhouse.get_node(2).toggle_actuator("heater", 0)
        greenhouse.get_node(1).toggle_actuator("window", 0)

        assert temperatures(greenhouse) == {1: 19.0, 2: 19.0, 3: 19.0}

    def test_impacts_clamped(self, greenhouse: Greenhouse) -> None:
        """The relay never pushes sensors beyond their bounds."""
        for node in greenhouse.nodes.values():
            node.apply_actuator_impact("temperature", -3.0)

        greenhouse.get_node(1).toggle_actuator("window", 0)

        assert temperatures(greenhouse) == {1: 15.0, 2: 15.0, 3: 15.0}

    def test_relay_registered_once(self, greenhouse: Greenhouse) -> None:
        """Re-adding a node does not double the impacts."""
        node = greenhouse.get_node(2)
        greenhouse.add_node(node)
        node.toggle_actuator("heater", 0)

        assert temperatures(greenhouse)[3] == 24.0

    def test_overlapping_toggles_cancel_out(self, scheduler: Scheduler) -> None:
        """Two toggles racing on one heater leave the sensors where they were."""
        node = SensorActuatorNode(1, scheduler)
        node.add_sensors(
            Sensor("temperature", 0.0, 100.0, 50.0, "°C", noise_fraction=0.0), 1
        )
        node.add_actuators(Actuator("heater", impacts={"temperature": 4.0}), 1)

        entered = threading.Event()
        release = threading.Event()
        calls: list[bool] = []

        class SlowListener:
            def actuator_updated(self, actuator: Actuator) -> None:
                calls.append(actuator.on)
                if len(calls) == 1:
                    entered.set()
                    release.wait(WAIT)

        # Registered before the greenhouse so it runs ahead of the relay
        node.add_actuator_listener(SlowListener())
        greenhouse = Greenhouse("Race")
        greenhouse.add_node(node)

        first = threading.Thread(target=node.toggle_actuator, args=("heater", 0))
        second = threading.Thread(target=node.toggle_actuator, args=("heater", 0))
        first.start()
        assert entered.wait(WAIT)
        second.start()
        time.sleep(0.1)
        release.set()
        first.join(WAIT)
        second.join(WAIT)

        assert calls == [True, False]
        assert node.get_actuator("heater", 0).on is False
        assert node.sensors[0].current == 50.0
