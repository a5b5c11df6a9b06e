#!/usr/bin/env python3
"""Basic greenhouse node simulation example.

This script demonstrates how to build a greenhouse from configuration,
watch sensor readings while periodic actuators switch devices, and replay
the fake control-panel events.

Run with: uv run python examples/basic_simulation.py
"""

import threading
import time
from collections.abc import Sequence

from greenhouse_nodes.controlpanel.logic import ControlPanelLogic, fake_script_duration
from greenhouse_nodes.core.base import Sensor
from greenhouse_nodes.core.config import default_config
from greenhouse_nodes.core.scheduler import Scheduler
from greenhouse_nodes.greenhouse.devices import create_node
from greenhouse_nodes.greenhouse.greenhouse import Greenhouse
from greenhouse_nodes.greenhouse.simulator import GreenhouseSimulator


def run_default_greenhouse() -> None:
    """Run the demo layout for a few seconds with fast sensing."""
    print("=" * 60)
    print("DEFAULT GREENHOUSE: three nodes, two periodic actuators")
    print("=" * 60)

    config = default_config().model_copy(update={"sensing_interval": 0.5, "seed": 1})
    simulator = GreenhouseSimulator(config)
    simulator.initialize()

    # Average temperature per sensing tick, over all nodes
    lock = threading.Lock()
    temperatures: list[float] = []

    class TemperatureRecorder:
        def sensors_updated(self, sensors: Sequence[Sensor]) -> None:
            values = [s.current for s in sensors if s.type == "temperature"]
            if values:
                with lock:
                    temperatures.append(sum(values) / len(values))

    simulator.subscribe_to_sensor_updates(TemperatureRecorder())

    print("Running simulation for 10 seconds...")
    simulator.start()
    time.sleep(10.0)
    simulator.stop()

    print()
    print(f"Collected {len(temperatures)} temperature readings")
    if temperatures:
        print(f"Range: {min(temperatures):.2f}°C - {max(temperatures):.2f}°C")

    for node_id, node in sorted(simulator.greenhouse.nodes.items()):
        states = ", ".join(
            f"{a.type}[{i}] {'ON' if a.on else 'off'}"
            for of_type in node.actuators.values()
            for i, a in enumerate(of_type)
        )
        print(f"  Node {node_id}: {states or 'no actuators'}")
    print()


def run_heater_relay() -> None:
    """Switch a heater on one node and watch every node warm up."""
    print("=" * 60)
    print("HEATER RELAY: one heater, three nodes")
    print("=" * 60)

    with Scheduler() as scheduler:
        greenhouse = Greenhouse("Relay demo")
        greenhouse.add_node(create_node(1, scheduler, temperature=1))
        greenhouse.add_node(create_node(2, scheduler, temperature=1, heaters=1))
        greenhouse.add_node(create_node(3, scheduler, temperature=2))

        def show(label: str) -> None:
            values = {
                node_id: [s.current for s in node.sensors]
                for node_id, node in sorted(greenhouse.nodes.items())
            }
            print(f"{label:>12}: {values}")

        show("Start")
        greenhouse.get_node(2).toggle_actuator("heater", 0)
        show("Heater ON")
        greenhouse.get_node(2).toggle_actuator("heater", 0)
        show("Heater off")
    print()


def run_fake_control_panel() -> None:
    """Replay the scripted control-panel events at ten times speed."""
    print("=" * 60)
    print("FAKE CONTROL PANEL: scripted node and sensor events")
    print("=" * 60)

    class Printer:
        def on_node_added(self, node_info: object) -> None:
            print(f"  + {node_info}")

        def on_node_removed(self, node_id: int) -> None:
            print(f"  - node {node_id}")

        def on_sensor_data(self, node_id: int, readings: list) -> None:
            print(f"    node {node_id}: {', '.join(str(r) for r in readings)}")

        def on_actuator_state_changed(
            self, node_id: int, actuator_type: str, index: int, on: bool
        ) -> None:
            print(f"    node {node_id}: {actuator_type}[{index}] {'ON' if on else 'off'}")

    time_scale = 0.1
    with Scheduler(name="fake-channel") as scheduler:
        logic = ControlPanelLogic(scheduler)
        logic.add_listener(Printer())
        logic.initiate_fake_events(time_scale=time_scale)
        time.sleep(fake_script_duration() * time_scale + 0.2)

    print(f"Known nodes at end: {sorted(logic.nodes)}")
    print()


def main() -> None:
    """Run all example scenarios."""
    run_heater_relay()
    run_fake_control_panel()
    run_default_greenhouse()

    print("=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
