"""CLI for healthchecked.

    healthchecked demo                          # loopback peer, 2s interval
    healthchecked demo --interval 500 --delay 40 --jitter 30 --duration 5
    healthchecked demo --config heartbeat.yaml
    healthchecked version
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from healthchecked import __version__
from healthchecked.augment import healthchecked
from healthchecked.config import HeartbeatConfig, load_config
from healthchecked.endpoint import EventEndpoint, LoopbackPeer
from healthchecked.errors import HeartbeatError
from healthchecked.scheduler import LATENCY_CHANGED_EVENT
from healthchecked.state import HeartbeatStatus

app = typer.Typer(
    name="healthchecked",
    help="Heartbeat and latency measurement for event endpoints",
    no_args_is_help=True,
)

console = Console()


def _resolve_config(config_path: Path | None, interval: int | None) -> HeartbeatConfig:
    config = load_config(config_path) if config_path else HeartbeatConfig()
    if interval is not None:
        config = HeartbeatConfig.from_options({"interval": interval})
    return config


async def _run_demo(
    config: HeartbeatConfig,
    delay_ms: int,
    jitter_ms: int,
    duration_s: float,
) -> HeartbeatStatus:
    endpoint = healthchecked(
        EventEndpoint(name="loopback", remote=LoopbackPeer(delay_ms, jitter_ms)),
        config,
    )

    def on_latency(payload: dict) -> None:
        console.print(f"[cyan]latency changed[/cyan] → [bold]{payload['latency']}ms[/bold]")

    endpoint.subscribe(LATENCY_CHANGED_EVENT, on_latency)
    endpoint.connect()
    try:
        await asyncio.sleep(duration_s)
    finally:
        endpoint.disconnect()
    return endpoint.status()


def _status_table(status: HeartbeatStatus) -> Table:
    table = Table(title="Heartbeat status")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in status.to_dict().items():
        table.add_row(key, "-" if value is None else str(value))
    return table


@app.command()
def demo(
    interval: int = typer.Option(
        None, "--interval", "-i", help="Checkup interval in ms (overrides --config)"),
    delay: int = typer.Option(25, "--delay", "-d", min=0, help="Peer ack delay in ms"),
    jitter: int = typer.Option(0, "--jitter", "-j", min=0, help="Extra random ack delay in ms"),
    duration: float = typer.Option(
        10.0, "--duration", "-t", min=0.0, help="How long to run, in seconds"),
    config_path: Path = typer.Option(
        None, "--config", "-c", help="YAML file with heartbeat options"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log heartbeat internals"),
) -> None:
    """Run a heartbeat against an in-process loopback peer."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    try:
        config = _resolve_config(config_path, interval)
    except HeartbeatError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[dim]interval={config.interval}ms delay={delay}ms "
        f"jitter={jitter}ms duration={duration}s[/dim]"
    )
    status = asyncio.run(_run_demo(config, delay, jitter, duration))
    console.print(_status_table(status))


@app.command()
def version() -> None:
    """Show the healthchecked version."""
    console.print(f"healthchecked version {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
