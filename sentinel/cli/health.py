"""Health commands: standalone health and metrics server."""

from pathlib import Path

import typer

from sentinel.cli.utils import DEFAULT_CONFIG_PATH, load_config, handle_errors, display_info

health_app = typer.Typer(help="Health and metrics endpoints")


@health_app.command(name="serve")
@handle_errors
def health_serve(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
    host: str = typer.Option("localhost", "--host", "-h", help="Health server host"),
    port: int = typer.Option(8000, "--port", "-p", help="Health server port"),
):
    """Start the health server without the scheduler."""
    from sentinel.health.checks import HealthChecker
    from sentinel.health.server import run_health_server, set_health_checker
    from sentinel.services.checkpoint_service import CheckpointService
    from sentinel.services.document_store import SqlAlchemyDocumentStore

    config = load_config(config_path)
    set_health_checker(
        HealthChecker(
            checkpoint_service=CheckpointService.from_config(config.checkpoint),
            store=SqlAlchemyDocumentStore(config.database.url),
            data_dir=Path(config.checkpoint.cache_dir),
        )
    )

    display_info(f"Starting health server at http://{host}:{port}")
    run_health_server(host=host, port=port)
