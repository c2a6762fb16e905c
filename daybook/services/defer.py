#!/usr/bin/env python3
"""
defer.py
-------------------
Defer an item to a later day, and undo it.

Defer copies the item (with its pending subtree) onto the target day and
marks the original deferred. Undefer deletes that copy, whatever happened
to it since, and returns the original to 'todo'.

Placement on the target day follows the item's nearest permanent
section: an item filed under "Work" lands in the target day's "Work".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.core.exceptions import (
    DataIntegrityError,
    DatabaseError,
    ValidationError,
)
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.core.validators import DataValidator
from daybook.database.configs.migration_options import MigrationSettings
from daybook.database.decorators import log_database_operation
from daybook.database.managers.day_manager import DayManager
from daybook.database.managers.item_manager import ItemManager
from daybook.database.models import Item, User
from .copier import SubtreeCopier
from .sections import PermanentSectionReconciler


@dataclass
class DeferResult:
    """Outcome of DeferService.call."""

    success: bool
    new_item: Optional[Item] = None
    nested_items_count: int = 0
    error: Optional[str] = None


@dataclass
class UndeferResult:
    """Outcome of UndeferService.call."""

    success: bool
    error: Optional[str] = None


class DeferService:
    """Moves an item's pending work to a target date."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.days = DayManager(session, logger)
        self.copier = SubtreeCopier(session, logger)
        self.items = self.copier.items
        self.sections = PermanentSectionReconciler(session, logger)

    @log_database_operation("defer_item")
    def call(
        self, item: Item, target_date: Any, user: Optional[User] = None
    ) -> DeferResult:
        """
        Defer `item` to `target_date`.

        Steps, all in one SAVEPOINT:
            1. find or create the target day and its permanent sections
            2. copy the item and its pending subtree onto that day
            3. mark the item deferred and move it to its parent's inactive list

        Args:
            item: A 'todo' item (sections may be deferred too)
            target_date: Date to defer to
            user: Owner (defaults to the item's owner)

        Returns:
            DeferResult with the copy and the number of todo items below it
        """
        user = user or item.user

        if not item.is_todo:
            return DeferResult(
                success=False, error="Only items in 'todo' state can be deferred"
            )
        try:
            target = DataValidator.normalize_date(target_date)
        except ValidationError as e:
            return DeferResult(success=False, error=str(e))
        if target is None:
            return DeferResult(success=False, error=f"Invalid target date: {target_date!r}")

        nested = self.items.active_todo_count(item)
        settings = MigrationSettings.for_user(user).items

        try:
            with self.session.begin_nested():
                day, _ = self.days.find_or_create(user, target)
                reconciled = self.sections.call(user, day)
                if not reconciled.success:
                    raise DatabaseError(reconciled.error)

                placement = self.items.placement_for_day(user, day, item)
                new_item = self.copier.copy_tree(item, placement, user, settings)
                self.items.set_deferred(item, target)
                self.session.flush()
        except (DatabaseError, ValidationError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "defer_item", "item_id": item.id, "target_date": str(target)}
            )
            return DeferResult(success=False, error=str(e))

        return DeferResult(success=True, new_item=new_item, nested_items_count=nested)


class UndeferService:
    """Reverts a defer: deletes the forward copy and reactivates the item."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.items = ItemManager(session, logger)

    @log_database_operation("undefer_item")
    def call(self, item: Item) -> UndeferResult:
        """
        Undo a defer of `item`.

        Only copies on the deferred-to day count; copies carried by day
        migrations are left alone. A missing copy is tolerated, more than
        one is reported and nothing is changed.
        """
        if not item.is_deferred:
            return UndeferResult(
                success=False,
                error="Only deferred items can be undeferred. This item has not been deferred.",
            )

        try:
            with self.session.begin_nested():
                copies = self.items.copies_of(item, on_date=item.deferred_to)
                if len(copies) > 1:
                    raise DataIntegrityError(
                        f"Multiple deferred copies found for item {item.id}"
                    )
                if copies:
                    self.items.delete_tree(copies[0])
                self.items.set_todo(item)
                self.session.flush()
        except (DatabaseError, ValidationError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "undefer_item", "item_id": item.id}
            )
            return UndeferResult(success=False, error=str(e))

        return UndeferResult(success=True)
