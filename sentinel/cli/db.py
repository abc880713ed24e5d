"""Database commands: create the schema and seed users and topics."""

from pathlib import Path

import typer

from sentinel.cli.utils import DEFAULT_CONFIG_PATH, load_config, handle_errors, display_success
from sentinel.services.document_store import SqlAlchemyDocumentStore
from sentinel.services.providers.arxiv import ArxivProvider

db_app = typer.Typer(help="Manage the document database")


@db_app.command(name="init")
@handle_errors
def db_init(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
):
    """Create tables if they do not exist."""
    config = load_config(config_path)
    SqlAlchemyDocumentStore(config.database.url, auto_create_schema=False).create_schema()
    display_success(f"Schema ready at {config.database.url}")


@db_app.command(name="add-user")
@handle_errors
def db_add_user(
    username: str = typer.Argument(..., help="Unique username"),
    inactive: bool = typer.Option(False, "--inactive", help="Create the user disabled"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
):
    """Add a user."""
    config = load_config(config_path)
    user = SqlAlchemyDocumentStore(config.database.url).add_user(username, is_active=not inactive)
    display_success(f"Added user {user.username} (id {user.id})")


@db_app.command(name="add-topic")
@handle_errors
def db_add_topic(
    user_id: int = typer.Argument(..., help="Owning user id"),
    name: str = typer.Argument(..., help="Topic name shown to the triage model"),
    query: str = typer.Argument(..., help='arXiv search_query, e.g. "cat:cs.CR AND all:fuzzing"'),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c"),
):
    """Add a topic to a user."""
    try:
        ArxivProvider().validate_query(query)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="QUERY")

    config = load_config(config_path)
    topic = SqlAlchemyDocumentStore(config.database.url).add_topic(user_id, name, query)
    display_success(f"Added topic {topic.name!r} (id {topic.id}) for user {user_id}")
