"""Run command for the daily automation.

Handles one invocation (or a loop until the day completes) and result display.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from sentinel.cli.utils import (
    DEFAULT_CONFIG_PATH,
    load_config,
    handle_errors,
    display_success,
    display_warning,
    display_info,
)
from sentinel.orchestration import AutomationResult, RunState, build_automation


@handle_errors
def run_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to automation config YAML",
    ),
    until_complete: bool = typer.Option(
        False,
        "--until-complete",
        help="Keep invoking past the batch cap until the day completes",
    ),
    date: Optional[str] = typer.Option(
        None, "--date", help="Day to run as YYYY-MM-DD (default: today, UTC)"
    ),
    max_invocations: int = typer.Option(
        100, "--max-invocations", help="Upper bound for --until-complete"
    ),
):
    """Run the daily automation once (one batch) or until the day completes."""
    config = load_config(config_path)
    automation = build_automation(config)

    display_info("Starting daily automation...")
    if until_complete:
        result = asyncio.run(automation.run_until_complete(date, max_invocations=max_invocations))
    else:
        result = asyncio.run(automation.run(date))

    _display_result(result)


def _display_result(result: AutomationResult) -> None:
    typer.echo("")
    if result.state == RunState.DAY_COMPLETE:
        typer.secho(f"Day {result.date} complete", fg=typer.colors.GREEN, bold=True)
    else:
        display_warning(f"Day {result.date} paused at batch cap; run again to continue")

    typer.echo(f"  Documents this invocation: {result.documents_processed}")
    typer.echo(f"  Cost this invocation: ${result.cost_usd:.4f}")

    checkpoint = result.checkpoint
    if checkpoint is not None:
        typer.echo(f"  Users processed: {checkpoint.users_processed}")
        typer.echo(f"  Documents found: {checkpoint.documents_found}")
        typer.echo(f"  Summarized: {checkpoint.documents_summarized}")
        typer.echo(f"  Skipped: {checkpoint.documents_skipped}")
        typer.echo(f"  Already stored: {checkpoint.documents_existing}")
        typer.echo(f"  Day total cost: ${checkpoint.total_cost_usd:.4f}")

        if checkpoint.budget_exhausted:
            display_warning("  Daily budget exhausted")

        if checkpoint.errors:
            display_warning(f"\nErrors: {len(checkpoint.errors)}")
            for err in checkpoint.errors:
                typer.echo(f"  - {err}")
        else:
            display_success("  No errors")
