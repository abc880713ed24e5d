"""Checkpoint commands: inspect or discard a day's progress."""

import json
from pathlib import Path
from typing import Optional

import typer

from sentinel.cli.utils import (
    DEFAULT_CONFIG_PATH,
    load_config,
    handle_errors,
    display_success,
    display_warning,
)
from sentinel.orchestration.automation import utc_today
from sentinel.services.checkpoint_service import CheckpointService

checkpoint_app = typer.Typer(help="Inspect or clear daily checkpoints")


@checkpoint_app.command(name="show")
@handle_errors
def checkpoint_show(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    date: Optional[str] = typer.Option(None, "--date", help="YYYY-MM-DD (default: today)"),
):
    """Print the stored checkpoint for a day."""
    config = load_config(config_path)
    day = date or utc_today()
    checkpoint = CheckpointService.from_config(config.checkpoint).load(day)

    if checkpoint is None:
        display_warning(f"No checkpoint for {day}")
        return

    typer.echo(json.dumps(checkpoint.model_dump(mode="json"), indent=2))


@checkpoint_app.command(name="clear")
@handle_errors
def checkpoint_clear(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    date: Optional[str] = typer.Option(None, "--date", help="YYYY-MM-DD (default: today)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a day's checkpoint so the next run starts the day over."""
    config = load_config(config_path)
    day = date or utc_today()

    if not yes:
        typer.confirm(f"Clear checkpoint for {day}?", abort=True)

    if CheckpointService.from_config(config.checkpoint).clear(day):
        display_success(f"Checkpoint for {day} cleared")
    else:
        raise typer.Exit(code=1)
