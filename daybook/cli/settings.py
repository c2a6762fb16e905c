"""
Settings Commands
--------------------------------

User settings: permanent sections and day migration options.

Commands:
    - load: Replace settings from a YAML file
    - show: Print the effective settings

Usage:
    daybook settings load settings.yaml
    daybook settings show
"""
import click
import yaml

from daybook.core.exceptions import DatabaseError, ValidationError
from daybook.core.logging_manager import handle_cli_error
from daybook.database.configs import MigrationSettings
from . import current_user, get_db


@click.group()
@click.pass_context
def settings(ctx: click.Context) -> None:
    """User settings (permanent sections, migration options)."""
    pass


@settings.command("load")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def settings_load(ctx, path):
    """Load settings from a YAML file."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            db.users.load_settings(user, path)
            sections = user.permanent_sections

        click.echo(f"✅ Settings loaded from {path}")
        if sections:
            click.echo(f"   Permanent sections: {', '.join(sections)}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "settings_load", {"path": path})


@settings.command("show")
@click.pass_context
def settings_show(ctx):
    """Show the effective settings as YAML."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            data = {
                "permanent_sections": user.permanent_sections,
                "day_migration_settings": MigrationSettings.for_user(user).to_dict(),
            }

        click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip())

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "settings_show")
