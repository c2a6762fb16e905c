"""
Item Commands
--------------------------------

Create items and move them through their states.

Commands:
    - add: Add an item to a day (or to a section)
    - done: Complete an item (schedules the next occurrence of recurring items)
    - undo: Return a done or dropped item to todo
    - drop: Drop an item
    - defer: Defer an item to another day
    - undefer: Revert a defer

Usage:
    daybook item add today "Water plants" --recur '{"frequency": "weekly", "days_of_week": [1]}'
    daybook item add today "Morning" --type section
    daybook item add today "Stretch" --section 3
    daybook item done 4
    daybook item defer 5 tomorrow
"""
import click

from daybook.core.exceptions import DatabaseError, ValidationError
from daybook.core.logging_manager import handle_cli_error
from daybook.database.models import Item, ItemType, User
from daybook.services import RecurrenceCalculator
from . import current_user, get_db, parse_day


def _owned_item(db, user: User, item_id: int) -> Item:
    item = db.items.get(item_id)
    if item is None or item.user_id != user.id:
        raise ValidationError(f"Item {item_id} not found")
    return item


@click.group()
@click.pass_context
def item(ctx: click.Context) -> None:
    """Item management (add, done, undo, drop, defer, undefer)."""
    pass


@item.command("add")
@click.argument("date")
@click.argument("title")
@click.option("--section", "section_id", type=int, help="Parent section item id")
@click.option(
    "--type",
    "item_type",
    type=click.Choice(ItemType.choices()),
    default=ItemType.COMPLETABLE.value,
    show_default=True,
    help="Item type",
)
@click.option("--recur", "rule", help="Recurrence rule as JSON")
@click.option("--top", is_flag=True, help="Insert at the top instead of the bottom")
@click.pass_context
def item_add(ctx, date, title, section_id, item_type, rule, top):
    """Add TITLE to the day DATE."""
    try:
        if rule is not None and RecurrenceCalculator.parse_rule(rule) is None:
            raise ValidationError(f"Invalid recurrence rule: {rule}")

        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            day_obj, _ = db.days.find_or_create(user, parse_day(date))

            parent = day_obj
            if section_id is not None:
                parent = _owned_item(db, user, section_id)
                if not parent.is_section:
                    raise ValidationError(f"Item {section_id} is not a section")

            new_item = db.items.create(
                user,
                title,
                item_type=item_type,
                parent=parent,
                recurrence_rule=rule,
                front=top,
            )

        click.echo(f"✅ Added '{new_item.title}' ({new_item.id}) to {day_obj.date}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "item_add", {"date": date, "title": title})


@item.command("done")
@click.argument("item_id", type=int)
@click.pass_context
def item_done(ctx, item_id):
    """Mark an item done."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = db.items.set_done(_owned_item(db, user, item_id))
            next_item = target.recurring_next_item
            next_date = None
            if next_item is not None:
                owner = db.items.parent_of(next_item)
                next_date = getattr(owner, "date", None)

        click.echo(f"✅ Done: {target.title}")
        if next_item is not None:
            click.echo(f"🔁 Next occurrence ({next_item.id}) on {next_date or 'a later day'}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "item_done", {"item_id": item_id})


@item.command("undo")
@click.argument("item_id", type=int)
@click.pass_context
def item_undo(ctx, item_id):
    """Return a done or dropped item to todo."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = _owned_item(db, user, item_id)
            if target.is_deferred:
                raise ValidationError("Item is deferred; use 'daybook item undefer'")
            db.items.set_todo(target)

        click.echo(f"↩️  Back to todo: {target.title}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "item_undo", {"item_id": item_id})


@item.command("drop")
@click.argument("item_id", type=int)
@click.pass_context
def item_drop(ctx, item_id):
    """Drop an item."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = db.items.set_dropped(_owned_item(db, user, item_id))

        click.echo(f"🗑️  Dropped: {target.title}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "item_drop", {"item_id": item_id})


@item.command("defer")
@click.argument("item_id", type=int)
@click.argument("date")
@click.pass_context
def item_defer(ctx, item_id, date):
    """Defer an item (and its pending sub-items) to DATE."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = _owned_item(db, user, item_id)
            result = db.deferrer.call(target, parse_day(date), user=user)
            if not result.success:
                raise ValidationError(result.error)

        click.echo(f"⏭️  Deferred '{target.title}' to {target.deferred_to}")
        if result.nested_items_count:
            click.echo(f"   {result.nested_items_count} nested todo item(s) carried along")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "item_defer", {"item_id": item_id, "date": date})


@item.command("undefer")
@click.argument("item_id", type=int)
@click.pass_context
def item_undefer(ctx, item_id):
    """Revert a defer: delete the deferred copy and reactivate the item."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            user = current_user(ctx, db)
            target = _owned_item(db, user, item_id)
            result = db.undeferrer.call(target)
            if not result.success:
                raise ValidationError(result.error)

        click.echo(f"↩️  Undeferred: {target.title}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "item_undefer", {"item_id": item_id})
