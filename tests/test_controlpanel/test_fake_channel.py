"""Tests for the node/sensor specification parsers and the fake channel."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from greenhouse_nodes.controlpanel.fake_channel import (
    FakeCommunicationChannel,
    parse_node_spec,
    parse_sensor_spec,
)
from greenhouse_nodes.core.state import SensorReading

if TYPE_CHECKING:
    from conftest import RecordingGreenhouseListener

    from greenhouse_nodes.core.scheduler import Scheduler


class TestParseNodeSpec:
    """Tests for node specifications."""

    def test_with_actuators(self) -> None:
        """'4;3_window' is node 4 with three windows."""
        info = parse_node_spec("4;3_window")

        assert info.node_id == 4
        windows = info.get_actuators("window")
        assert len(windows) == 3
        assert all(w.type == "window" and w.node_id == 4 for w in windows)
        assert all(w.on is False for w in windows)

    def test_id_only(self) -> None:
        """'1' is node 1 without actuators."""
        info = parse_node_spec("1")
        assert info.node_id == 1
        assert info.actuator_count() == 0

    def test_several_groups(self) -> None:
        """Groups are separated by spaces."""
        info = parse_node_spec("8;2_heater 1_fan")
        assert info.actuator_count("heater") == 2
        assert info.actuator_count("fan") == 1

    def test_zero_count(self) -> None:
        """A zero count adds nothing."""
        assert parse_node_spec("3;0_fan").actuator_count() == 0

    @pytest.mark.parametrize(
        "spec",
        [
            "",
            "x",
            "4.5",
            "4;3_window;2",
            "4;window",
            "4;3_window_big",
            "4;3_",
            "4;x_window",
            "4;-1_window",
            "4;",
            "4;3_window  1_fan",
            "\u0664;3_window",
            "4;\u0663_window",
        ],
    )
    def test_malformed(self, spec: str) -> None:
        """Malformed specifications raise ValueError."""
        with pytest.raises(ValueError):
            parse_node_spec(spec)


class TestParseSensorSpec:
    """Tests for sensor data specifications."""

    def test_readings(self) -> None:
        """Readings are parsed in order."""
        node_id, readings = parse_sensor_spec("4;temperature=27.4 °C,humidity=80 %")

        assert node_id == 4
        assert readings == [
            SensorReading("temperature", 27.4, "°C"),
            SensorReading("humidity", 80.0, "%"),
        ]

    def test_negative_values(self) -> None:
        """Negative numbers are accepted."""
        _, readings = parse_sensor_spec("2;temperature=-3.5 °C")
        assert readings[0].value == -3.5

    @pytest.mark.parametrize(
        "spec",
        [
            "",
            "4",
            "4;",
            "a;temperature=20 °C",
            "4;temperature=20 °C;x",
            "4;temperature",
            "4;=20 °C",
            "4;temperature=20",
            "4;temperature=20 ",
            "4;temperature=warm °C",
            "4;temperature=nan °C",
            "4;temperature=inf °C",
            "4;temperature=1e999 °C",
            "4;temperature=1_0 °C",
            "4;temperature=\u0662\u0660 °C",
            "4;temperature=0x1A °C",
            "4;temperature=20 °C extra",
            "4;temperature=20 °C,",
        ],
    )
    def test_malformed(self, spec: str) -> None:
        """Malformed specifications raise ValueError."""
        with pytest.raises(ValueError):
            parse_sensor_spec(spec)


class TestFakeCommunicationChannel:
    """Tests for delayed event delivery."""

    def test_spawn_node(
        self,
        scheduler: Scheduler,
        greenhouse_listener: RecordingGreenhouseListener,
    ) -> None:
        """Spawned node is delivered to the listener."""
        channel = FakeCommunicationChannel(greenhouse_listener, scheduler)
        channel.spawn_node("4;3_window", 0.01)

        assert greenhouse_listener.wait_for(1)
        kind, info = greenhouse_listener.events[0]
        assert kind == "added"
        assert info.node_id == 4
        assert info.actuator_count("window") == 3

    def test_sensor_data(
        self,
        scheduler: Scheduler,
        greenhouse_listener: RecordingGreenhouseListener,
    ) -> None:
        """Sensor data is delivered with the parsed readings."""
        channel = FakeCommunicationChannel(greenhouse_listener, scheduler)
        channel.advertise_sensor_data("1;humidity=80 %,humidity=82 %", 0.0)

        assert greenhouse_listener.wait_for(1)
        assert greenhouse_listener.events[0] == (
            "data",
            1,
            [SensorReading("humidity", 80.0, "%"), SensorReading("humidity", 82.0, "%")],
        )

    def test_removed_and_actuator(
        self,
        scheduler: Scheduler,
        greenhouse_listener: RecordingGreenhouseListener,
    ) -> None:
        """Events arrive in order of their delays."""
        channel = FakeCommunicationChannel(greenhouse_listener, scheduler)
        channel.advertise_removed_node(8, 0.1)
        channel.advertise_actuator_state(4, "window", 1, True, 0.0)

        assert greenhouse_listener.wait_for(2)
        assert greenhouse_listener.events == [
            ("actuator", 4, "window", 1, True),
            ("removed", 8),
        ]

    def test_malformed_schedules_nothing(
        self,
        scheduler: Scheduler,
        greenhouse_listener: RecordingGreenhouseListener,
    ) -> None:
        """Parse errors are raised synchronously and schedule nothing."""
        channel = FakeCommunicationChannel(greenhouse_listener, scheduler)

        with pytest.raises(ValueError):
            channel.spawn_node("4;window", 0.0)
        with pytest.raises(ValueError):
            channel.advertise_sensor_data("4;temperature", 0.0)

        assert scheduler.pending() == 0
        assert greenhouse_listener.events == []

    def test_negative_delay(
        self,
        scheduler: Scheduler,
        greenhouse_listener: RecordingGreenhouseListener,
    ) -> None:
        """Negative delays are rejected."""
        channel = FakeCommunicationChannel(greenhouse_listener, scheduler)
        with pytest.raises(ValueError, match="non-negative"):
            channel.advertise_removed_node(1, -1.0)

    def test_cancel_delivery(
        self,
        scheduler: Scheduler,
        greenhouse_listener: RecordingGreenhouseListener,
    ) -> None:
        """The returned handle cancels the delivery."""
        channel = FakeCommunicationChannel(greenhouse_listener, scheduler)
        task = channel.spawn_node("1", 0.05)
        task.cancel()

        assert not greenhouse_listener.wait_for(1, timeout=0.2)
