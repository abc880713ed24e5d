"""Validate command for configuration files."""

from pathlib import Path

import typer

from sentinel.services.config_manager import ConfigManager
from sentinel.cli.utils import handle_errors, display_success, display_error


@handle_errors
def validate_command(
    config_path: Path = typer.Argument(..., help="Config file to validate"),
):
    """Validate configuration file syntax and semantics."""
    try:
        config = ConfigManager(config_path=str(config_path)).load_config()
    except Exception as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    display_success("Configuration is valid!")
    typer.echo(f"  Daily ceiling: ${config.budget.daily_ceiling_usd:.2f}")
    typer.echo(f"  Batch cap: {config.budget.batch_cap}")
    typer.echo(f"  Relevance threshold: {config.budget.relevance_threshold}")
    typer.echo(f"  Triage model: {config.ai.triage_model}")
    typer.echo(f"  Summary model: {config.ai.summary_model}")
    if not config.ai.api_key:
        display_error("  ai.api_key is not set; model calls will fail")
