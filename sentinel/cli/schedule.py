"""Schedule commands for the automation daemon."""

import asyncio
from pathlib import Path

import typer

from sentinel.cli.utils import DEFAULT_CONFIG_PATH, load_config, display_warning, display_success, logger
from sentinel.models.config import AutomationConfig

schedule_app = typer.Typer(help="Run the automation on a schedule")


@schedule_app.command(name="start")
def schedule_start(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to automation config YAML",
    ),
    health_port: int = typer.Option(
        8000, "--health-port", "-p", help="Port for health server"
    ),
):
    """Start scheduler daemon with health server.

    The daily trigger starts the day; the resume trigger keeps invoking
    until the checkpoint is complete. Press Ctrl+C to stop gracefully.
    """
    config = load_config(config_path)
    try:
        asyncio.run(_run_scheduler(config, health_port))
    except KeyboardInterrupt:
        display_warning("\nScheduler stopped.")
    except Exception as e:
        logger.exception("scheduler_failed")
        typer.secho(f"Scheduler failed: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


async def _run_scheduler(config: AutomationConfig, health_port: int) -> None:
    from sentinel.health.checks import HealthChecker
    from sentinel.health.server import run_health_server_async, set_health_checker
    from sentinel.orchestration import build_automation
    from sentinel.scheduling import AutomationScheduler, automation_jobs

    automation = build_automation(config)
    set_health_checker(
        HealthChecker(
            checkpoint_service=automation.checkpoint_service,
            store=automation.store,
            data_dir=Path(config.checkpoint.cache_dir),
        )
    )

    schedule = config.schedule
    typer.secho("Starting arxiv-sentinel scheduler", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"  Daily run: {schedule.hour:02d}:{schedule.minute:02d} {schedule.timezone}")
    typer.echo(f"  Resume every: {schedule.resume_interval_minutes} min")
    typer.echo(f"  Health endpoint: http://localhost:{health_port}/health")
    typer.echo("\nPress Ctrl+C to stop.\n")

    scheduler = AutomationScheduler(timezone=schedule.timezone)
    daily_job, resume_job = automation_jobs(automation)
    scheduler.add_automation_jobs(
        daily_job,
        resume_job,
        hour=schedule.hour,
        minute=schedule.minute,
        resume_interval_minutes=schedule.resume_interval_minutes,
    )

    jobs = scheduler.get_jobs()
    display_success(f"Scheduled {len(jobs)} jobs:")
    for job in jobs:
        typer.echo(f"  - {job['id']}: next run at {job.get('next_run_time', 'N/A')}")

    await asyncio.gather(
        run_health_server_async(host="0.0.0.0", port=health_port, log_level="warning"),
        scheduler.start(),
    )
