"""arxiv-sentinel CLI Package.

Usage:
    python -m sentinel.cli run --config config/automation.yaml
    python -m sentinel.cli run --until-complete
    python -m sentinel.cli validate config/automation.yaml
    python -m sentinel.cli checkpoint show
    python -m sentinel.cli db add-user alice
    python -m sentinel.cli schedule start
    python -m sentinel.cli health serve
"""

import typer

from sentinel.cli.run import run_command
from sentinel.cli.validate import validate_command
from sentinel.cli.checkpoint import checkpoint_app
from sentinel.cli.db import db_app
from sentinel.cli.schedule import schedule_app
from sentinel.cli.health import health_app

app = typer.Typer(help="arxiv-sentinel: daily arXiv discovery, triage and summarization")

app.command(name="run")(run_command)
app.command(name="validate")(validate_command)

app.add_typer(checkpoint_app, name="checkpoint")
app.add_typer(db_app, name="db")
app.add_typer(schedule_app, name="schedule")
app.add_typer(health_app, name="health")

__all__ = [
    "app",
    "run_command",
    "validate_command",
    "checkpoint_app",
    "db_app",
    "schedule_app",
    "health_app",
]
