"""
Day Commands
--------------------------------

Open, close, display and migrate days.

Commands:
    - open: Open (or create) a day
    - close: Close a day
    - show: Print a day as an outline
    - migrate: Copy a day's pending items to another date
    - import: Migrate the latest closed day into a date

Usage:
    daybook day open today
    daybook day show 2025-01-15
    daybook day migrate 2025-01-15 2025-01-16
    daybook day import today
"""
import click

from daybook.core.exceptions import DatabaseError, MigrationError, ValidationError
from daybook.core.logging_manager import handle_cli_error
from daybook.database.models import DayState
from . import current_user, get_db, parse_day


@click.group()
@click.pass_context
def day(ctx: click.Context) -> None:
    """Day management (open, close, show, migrate)."""
    pass


@day.command("open")
@click.argument("date")
@click.pass_context
def day_open(ctx, date):
    """Open a day, creating it with its permanent sections if needed."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            result = db.days.open_day(user, parse_day(date))
            if not result.success:
                raise ValidationError(result.error)

        if result.created:
            click.echo(f"✅ Created day {result.day.date}")
        elif result.reopened:
            click.echo(f"🔓 Reopened day {result.day.date}")
        else:
            click.echo(f"📅 Day {result.day.date} is open")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "day_open", {"date": date})


@day.command("close")
@click.argument("date")
@click.pass_context
def day_close(ctx, date):
    """Close a day."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = db.days.get(user, parse_day(date))
            if target is None:
                raise ValidationError(f"No day found for {date}")
            db.days.close_day(target)

        click.echo(f"🔒 Closed day {target.date}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "day_close", {"date": date})


@day.command("show")
@click.argument("date")
@click.pass_context
def day_show(ctx, date):
    """Print a day's items as an outline."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = db.days.get(user, parse_day(date))
            if target is None:
                raise ValidationError(f"No day found for {date}")

            tree = db.trees.build(db.descendants.get_for(target), root_label=str(target.date))
            lines = tree.render()
            header = f"📅 {target.date} ({DayState(target.state).value})"
            if target.imported_from_day is not None:
                header += f" ← {target.imported_from_day.date}"
            if target.imported_to_day is not None:
                header += f" → {target.imported_to_day.date}"

        click.echo(header)
        for line in lines or ["(empty)"]:
            click.echo(f"  {line}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "day_show", {"date": date})


@day.command("migrate")
@click.argument("source")
@click.argument("target")
@click.pass_context
def day_migrate(ctx, source, target):
    """Copy SOURCE day's pending items to the TARGET date."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            source_day = db.days.get(user, parse_day(source))
            if source_day is None:
                raise ValidationError(f"No day found for {source}")

            result = db.migrator.call(user, source_day, parse_day(target))
            if not result.success:
                raise MigrationError(result.error)

        click.echo(
            f"✅ Migrated {result.migrated_count} item(s) "
            f"from {source_day.date} to {result.target_day.date}"
        )

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "day_migrate", {"source": source, "target": target})


@day.command("import")
@click.argument("target", default="today")
@click.pass_context
def day_import(ctx, target):
    """Migrate the latest closed, not yet migrated day into TARGET."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target_date = parse_day(target)

            source_day = db.days.find_latest_importable(user, target_date)
            conditions = db.days.validate_import_conditions(user, source_day, target_date)
            if not conditions.valid:
                raise MigrationError(conditions.error_message)

            result = db.migrator.call(user, source_day, target_date)
            if not result.success:
                raise MigrationError(result.error)

        click.echo(
            f"✅ Imported {result.migrated_count} item(s) "
            f"from {source_day.date} into {result.target_day.date}"
        )

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "day_import", {"target": target})
