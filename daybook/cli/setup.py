"""
Setup Commands
--------------------------------

Database initialization and schema status.

Commands:
    - init: Create (or upgrade) the database schema
    - status: Show the current Alembic revision
"""
import click

from daybook.core.exceptions import DatabaseError
from daybook.core.logging_manager import handle_cli_error
from . import get_db


@click.command()
@click.pass_context
def init(ctx):
    """Initialize the database (create tables or run pending migrations)."""
    try:
        click.echo("🚀 Initializing daybook database...")
        db = get_db(ctx)
        db.initialize_schema()
        click.echo(f"✅ Database ready: {db.db_path}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")


@click.command()
@click.pass_context
def status(ctx):
    """Show migration status."""
    try:
        db = get_db(ctx)
        history = db.get_migration_history()
        if "error" in history:
            raise DatabaseError(history["error"])

        click.echo(f"📍 Current revision: {history['current_revision'] or 'none'}")
        click.echo(f"📊 Status: {history['status']}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "status")
