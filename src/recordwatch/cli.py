"""Command-line interface for recordwatch.

This module provides CLI commands for inspecting the configuration,
diffing two JSON documents the way the engine diffs snapshots, and
watching a JSON file for changes.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from recordwatch.core.config import Settings, get_settings
from recordwatch.core.logging import configure_logging, get_logger
from recordwatch.core.observe.clock import AsyncioClock
from recordwatch.core.observe.diff import diff as diff_snapshots
from recordwatch.core.observe.engine import ObservationEngine
from recordwatch.domain.entities.change_record import ChangeRecord
from recordwatch.domain.entities.record import Record
from recordwatch.domain.entities.snapshot import Snapshot


@click.group()
@click.version_option(version="0.1.0", prog_name="recordwatch")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides RECORDWATCH_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """recordwatch - change observation for plain Python containers."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    ctx.obj = settings


def _load_object(path: str) -> dict[str, Any]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        click.echo(f"Error: cannot read {path}: {e}", err=True)
        sys.exit(1)
    if not isinstance(data, dict):
        click.echo(f"Error: {path} does not contain a JSON object", err=True)
        sys.exit(1)
    return data


def _canonical(value: Any) -> str:
    # Freshly decoded lists and objects are never identical, compare their text
    return json.dumps(value, sort_keys=True)


def _document_snapshot(data: dict[str, Any], extensible: bool = True) -> Snapshot:
    return Snapshot(
        record=None,
        keys=tuple(data),
        values={key: _canonical(value) for key, value in data.items()},
        extensible=extensible,
    )


def _change_line(change: ChangeRecord, decode_old_value: bool = False) -> str:
    data = change.to_dict(include_object=False)
    if decode_old_value and "old_value" in data:
        data["old_value"] = json.loads(data["old_value"])
    return json.dumps(data, default=repr)


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Show the effective configuration."""
    click.echo(f"""
{settings.app_name} v{settings.app_version}

Environment:    {settings.environment}

Scheduler:
  Tick:         {settings.tick_interval_ms} ms

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


@cli.command()
@click.argument("old", type=click.Path(dir_okay=False))
@click.argument("new", type=click.Path(dir_okay=False))
@click.option(
    "--sealed",
    is_flag=True,
    default=False,
    help="Treat NEW as no longer extensible",
)
def diff(old: str, new: str, sealed: bool) -> None:
    """Print the change records between two JSON objects, one per line."""
    changes = diff_snapshots(
        _document_snapshot(_load_object(old)),
        _document_snapshot(_load_object(new), extensible=not sealed),
    )
    for change in changes:
        click.echo(_change_line(change, decode_old_value=True))


def _mirror(record: Record, data: dict[str, Any]) -> None:
    for key in [key for key in record if key not in data]:
        del record[key]
    for key, value in data.items():
        if key not in record or record[key] != value:
            record[key] = value


async def _watch(path: str, settings: Settings, ticks: int) -> None:
    logger = get_logger(__name__)
    record = Record(_load_object(path))
    engine = ObservationEngine(clock=AsyncioClock(settings.tick_interval), settings=settings)

    def print_changes(changes: list[ChangeRecord]) -> None:
        for change in changes:
            click.echo(_change_line(change))

    engine.observe(record, print_changes)
    logger.info("Watching file", path=path, keys=len(record))
    try:
        count = 0
        while not ticks or count < ticks:
            await asyncio.sleep(settings.tick_interval)
            try:
                data = json.loads(Path(path).read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                # Half-written file, try again on the next tick
                logger.warning("Cannot reload file", path=path, error=str(e))
                data = None
            if isinstance(data, dict):
                _mirror(record, data)
            count += 1
        engine.tick()
        engine.flush()
    finally:
        engine.close()


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--interval-ms",
    type=click.IntRange(1, 60_000),
    default=None,
    help="Tick interval in milliseconds (overrides config)",
)
@click.option(
    "--ticks",
    type=int,
    default=0,
    show_default=True,
    help="Stop after this many reloads, 0 = until interrupted",
)
@click.pass_obj
def watch(settings: Settings, path: str, interval_ms: int | None, ticks: int) -> None:
    """Watch a JSON object file and print its changes as JSON lines."""
    if interval_ms is not None:
        settings = Settings(**{**settings.model_dump(), "tick_interval_ms": interval_ms})
    try:
        asyncio.run(_watch(path, settings, ticks))
    except KeyboardInterrupt:
        pass


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `recordwatch` command is run
    or when using `python -m recordwatch`.
    """
    cli()


if __name__ == "__main__":
    main()
