#!/usr/bin/env python3
"""
Daybook CLI
-----------------------------------

Command-line interface for the daybook: days, items and settings.

This module provides the main CLI group and shared context setup
for all commands.

Command Structure:
    - Setup (init)
    - Settings (settings load, settings show)
    - Days (day open/close/show/migrate/import)
    - Items (item add/done/undo/drop/defer/undefer)

Usage:
    # Get general help
    daybook --help

    # Open today and add an item to it
    daybook day open today
    daybook item add today "Write report"

    # Carry yesterday's pending work into today
    daybook day migrate yesterday today
"""
import logging
from datetime import date, timedelta
from pathlib import Path

import click

from daybook.core.cli_utils import setup_logger
from daybook.core.paths import ALEMBIC_DIR, DB_PATH, LOG_DIR
from daybook.core.validators import DataValidator
from daybook.database.manager import DaybookDB
from daybook.database.models import User

DEFAULT_USER = "me@localhost"

_RELATIVE_DAYS = {"yesterday": -1, "today": 0, "tomorrow": 1}


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--alembic-dir",
    type=click.Path(),
    default=str(ALEMBIC_DIR),
    help="Path to Alembic directory",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--user",
    "user_email",
    envvar="DAYBOOK_USER",
    default=DEFAULT_USER,
    show_default=True,
    help="E-mail of the daybook owner",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, alembic_dir, log_dir, user_email, verbose):
    """Daybook: days, items and their migration."""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["alembic_dir"] = Path(alembic_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["user_email"] = user_email
    ctx.obj["verbose"] = verbose
    ctx.obj["logger"] = setup_logger(Path(log_dir), "cli")


def get_db(ctx) -> DaybookDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        ctx.obj["db"] = DaybookDB(
            db_path=ctx.obj["db_path"],
            alembic_dir=ctx.obj["alembic_dir"],
            log_dir=ctx.obj["log_dir"],
        )
    return ctx.obj["db"]


def current_user(ctx, db: DaybookDB) -> User:
    """Owner selected with --user (created on first use). Needs a session scope."""
    return db.users.get_or_create(ctx.obj["user_email"])


def parse_day(value: str) -> date:
    """
    Parse a day argument.

    Accepts YYYY-MM-DD or one of 'yesterday', 'today', 'tomorrow'.

    Raises:
        ValidationError: If the value is not a date
    """
    offset = _RELATIVE_DAYS.get(value.strip().lower())
    if offset is not None:
        return date.today() + timedelta(days=offset)
    return DataValidator.normalize_date(value)


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init, status  # noqa: E402
from .settings import settings  # noqa: E402
from .day import day  # noqa: E402
from .item import item  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(status)

# Register command groups
cli.add_command(settings)
cli.add_command(day)
cli.add_command(item)


if __name__ == "__main__":
    cli(obj={})
