"""CLI interface for greenhouse-nodes.

This module provides a command-line interface for running the node
simulation and the fake control-panel event demo.

Usage:
    ghnodes run
    ghnodes run my-greenhouse.yaml --duration 60
    ghnodes fake --time-scale 0.5
    ghnodes init "My Greenhouse" -o my-greenhouse.yaml
    ghnodes validate my-greenhouse.yaml
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from greenhouse_nodes.controlpanel.logic import ControlPanelLogic, fake_script_duration
from greenhouse_nodes.core.config import (
    GreenhouseConfig,
    default_config,
    load_config,
    save_config,
)
from greenhouse_nodes.core.scheduler import Scheduler
from greenhouse_nodes.greenhouse.simulator import GreenhouseSimulator

if TYPE_CHECKING:
    from greenhouse_nodes.core.base import Actuator, Sensor
    from greenhouse_nodes.core.state import SensorActuatorNodeInfo, SensorReading
    from greenhouse_nodes.greenhouse.node import SensorActuatorNode

app = typer.Typer(
    name="ghnodes",
    help="Greenhouse sensor/actuator node simulator.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class NodePrinter:
    """Prints simulation events of one node to the console."""

    def __init__(self, node_id: int) -> None:
        self.node_id = node_id

    def sensors_updated(self, sensors: Sequence[Sensor]) -> None:
        values = ", ".join(f"{s.type}={s.current:.2f} {s.unit}" for s in sensors)
        console.print(f"[cyan]Node {self.node_id}[/] {values or '[dim]no sensors[/]'}")

    def actuator_updated(self, actuator: Actuator) -> None:
        state = "[green]ON[/]" if actuator.on else "[red]off[/]"
        console.print(f"[cyan]Node {self.node_id}[/] {actuator.type} {state}")

    def on_node_ready(self, node: SensorActuatorNode) -> None:
        console.print(f"[green]Node {node.id} ready[/]")

    def on_node_stopped(self, node: SensorActuatorNode) -> None:
        console.print(f"[yellow]Node {node.id} stopped[/]")


class ControlPanelPrinter:
    """Prints control-panel events to the console."""

    def on_node_added(self, node_info: SensorActuatorNodeInfo) -> None:
        actuators = ", ".join(
            f"{len(a)} x {t}" for t, a in node_info.actuators.items()
        )
        console.print(
            f"[green]+ Node {node_info.node_id}[/] {actuators or '[dim]no actuators[/]'}"
        )

    def on_node_removed(self, node_id: int) -> None:
        console.print(f"[yellow]- Node {node_id}[/]")

    def on_sensor_data(self, node_id: int, readings: list[SensorReading]) -> None:
        values = ", ".join(str(r) for r in readings)
        console.print(f"[cyan]Node {node_id}[/] {values}")

    def on_actuator_state_changed(
        self, node_id: int, actuator_type: str, index: int, on: bool
    ) -> None:
        state = "[green]ON[/]" if on else "[red]off[/]"
        console.print(f"[cyan]Node {node_id}[/] {actuator_type}[{index}] {state}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config_path: Path | None) -> GreenhouseConfig:
    if config_path is None:
        return default_config()
    try:
        return load_config(config_path)
    except FileNotFoundError:
        console.print(f"[red]Error:[/] Config file not found: {config_path}")
        raise typer.Exit(1) from None
    except Exception as e:
        console.print(f"[red]Error:[/] Invalid configuration: {e}")
        raise typer.Exit(1) from None


@app.command()
def run(
    config_path: Annotated[
        Path | None,
        typer.Argument(help="Path to YAML configuration file (default layout if omitted)"),
    ] = None,
    duration: Annotated[
        float,
        typer.Option("--duration", "-d", help="Seconds to run the simulation"),
    ] = 30.0,
    sensing_interval: Annotated[
        float | None,
        typer.Option("--sensing-interval", "-i", help="Override sensing interval"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress per-reading output"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Run the greenhouse node simulation."""
    _configure_logging(verbose)
    config = _load(config_path)

    if sensing_interval is not None:
        if sensing_interval <= 0:
            console.print("[red]Error:[/] Sensing interval must be positive")
            raise typer.Exit(1)
        config = config.model_copy(update={"sensing_interval": sensing_interval})

    simulator = GreenhouseSimulator(config)
    try:
        simulator.initialize()
    except (KeyError, ValueError) as e:
        console.print(f"[red]Error:[/] Failed to create simulation: {e}")
        simulator.stop()
        raise typer.Exit(1) from None

    if not quiet:
        for node in simulator.greenhouse.nodes.values():
            printer = NodePrinter(node.id)
            node.add_state_listener(printer)
            node.add_sensor_listener(printer)
            node.add_actuator_listener(printer)
        console.print(f"\n[bold]Running:[/] {config.name} for {duration:g}s\n")

    simulator.start()
    try:
        time.sleep(duration)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/]")
    finally:
        simulator.stop()

    _print_summary(simulator, quiet)


@app.command()
def fake(
    duration: Annotated[
        float | None,
        typer.Option("--duration", "-d", help="Seconds to run (default: whole script)"),
    ] = None,
    time_scale: Annotated[
        float,
        typer.Option("--time-scale", "-t", help="Multiplier for event delays"),
    ] = 1.0,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Replay the scripted fake control-panel events."""
    _configure_logging(verbose)
    if time_scale < 0:
        console.print("[red]Error:[/] Time scale must be non-negative")
        raise typer.Exit(1)

    with Scheduler(name="fake-channel") as scheduler:
        logic = ControlPanelLogic(scheduler)
        logic.add_listener(ControlPanelPrinter())
        logic.initiate_fake_events(time_scale=time_scale)
        wait = duration if duration is not None else fake_script_duration() * time_scale + 0.5
        try:
            time.sleep(wait)
        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted[/]")

    console.print(f"\nKnown nodes at end: {sorted(logic.nodes) or 'none'}")


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Name for the new greenhouse")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file path"),
    ] = None,
) -> None:
    """Generate a starter YAML configuration file."""
    config = default_config().model_copy(update={"name": name})

    if output is None:
        # "My Greenhouse" -> "my-greenhouse.yaml"
        output = Path(name.lower().replace(" ", "-") + ".yaml")

    save_config(config, output)
    console.print(f"[green]Created:[/] {output}")
    console.print("\nEdit this file to customize your greenhouse, then run:")
    console.print(f"  ghnodes run {output}")


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to YAML configuration")],
) -> None:
    """Validate a configuration file without running."""
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        console.print(f"[red]Error:[/] File not found: {config_path}")
        raise typer.Exit(1) from None
    except Exception as e:
        console.print(f"[red]Invalid:[/] {e}")
        raise typer.Exit(1) from None

    console.print(f"[green]Valid:[/] {config.name}")
    console.print(f"  Sensing interval: {config.sensing_interval} seconds")
    console.print(f"  Nodes: {len(config.nodes)}")
    console.print(f"  Periodic actuators: {len(config.periodic_actuators)}")


def _print_summary(simulator: GreenhouseSimulator, quiet: bool) -> None:
    if quiet:
        return
    table = Table(title="Final node state")
    table.add_column("Node", style="cyan")
    table.add_column("Sensors")
    table.add_column("Actuators")
    for node_id, node in sorted(simulator.greenhouse.nodes.items()):
        sensors = ", ".join(str(s.reading) for s in node.sensors)
        actuators = ", ".join(
            f"{a.type}[{i}] {'ON' if a.on else 'off'}"
            for of_type in node.actuators.values()
            for i, a in enumerate(of_type)
        )
        table.add_row(str(node_id), sensors or "-", actuators or "-")
    console.print(table)


def main() -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success).
    """
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1


if __name__ == "__main__":
    sys.exit(main())
