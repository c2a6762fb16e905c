#!/usr/bin/env python3
"""
migration.py
-------------------
Day migration: carry a day's pending work forward to another date.

A source day is migrated exactly once. The target day is found or created
(a new one receives the permanent sections) and the source's root
references are walked in order:

    - permanent sections still in the settings are merged: their eligible
      children are copied into the target's same-titled section, the
      section itself is not duplicated and not counted; a flagged section
      whose title was removed from the settings migrates as a plain one
    - other sections are skipped when `active_item_sections` is off
    - remaining eligible items are copied to the target day's root
    - lists and journals are linked again when `links` is on, notes when
      `notes` is on

Both days are then linked to each other and stamped with `imported_at`.
Everything happens in one SAVEPOINT.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.core.exceptions import DatabaseError, MigrationError, ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.core.validators import DataValidator
from daybook.database.configs.migration_options import MigrationSettings
from daybook.database.decorators import log_database_operation
from daybook.database.managers.day_manager import DayManager
from daybook.database.models import ChildRef, Day, Descendant, EntityKind, Item, User, utcnow
from .copier import SubtreeCopier


@dataclass
class MigrationResult:
    """Outcome of DayMigrator.call."""

    success: bool
    target_day: Optional[Day] = None
    migrated_count: int = 0
    error: Optional[str] = None


class DayMigrator:
    """Migrates the pending items of one day to another date."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.days = DayManager(session, logger)
        self.copier = SubtreeCopier(session, logger)
        self.items = self.copier.items
        self.descendants = self.copier.descendants

    @log_database_operation("migrate_day")
    def call(
        self,
        user: User,
        source_day: Day,
        target_date: Any,
        settings: Optional[MigrationSettings] = None,
    ) -> MigrationResult:
        """
        Migrate `source_day` to `target_date`.

        Args:
            user: Owner of both days
            source_day: Day to read from (left unchanged apart from its links)
            target_date: Date of the target day (past, present or future)
            settings: Migration options (defaults to the user's settings)

        Returns:
            MigrationResult with the target day and the number of root
            items copied; nothing is written on failure
        """
        settings = settings or MigrationSettings.for_user(user)

        try:
            with self.session.begin_nested():
                self._check_source(source_day)
                target_day, created = self.days.find_or_create(user, target_date)
                self._check_target(source_day, target_day)

                migrated = self._migrate(user, source_day, target_day, settings)

                now = utcnow()
                source_day.imported_to_day = target_day
                source_day.imported_at = now
                target_day.imported_from_day = source_day
                target_day.imported_at = now
                self.session.flush()
        except (DatabaseError, ValidationError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e,
                {
                    "operation": "migrate_day",
                    "source_day_id": source_day.id,
                    "target_date": str(target_date),
                },
            )
            return MigrationResult(success=False, error=str(e))

        safe_logger(self.logger).log_info(
            "day_migrated",
            {
                "source_day_id": source_day.id,
                "target_day_id": target_day.id,
                "target_created": created,
                "migrated_count": migrated,
            },
        )
        return MigrationResult(success=True, target_day=target_day, migrated_count=migrated)

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _check_source(self, source_day: Day) -> None:
        if source_day.imported_to_day_id is None:
            return
        existing = self.session.get(Day, source_day.imported_to_day_id)
        when = existing.date.isoformat() if existing is not None else "another day"
        raise MigrationError(
            f"This day has already been migrated to {when}. Cannot migrate again."
        )

    @staticmethod
    def _check_target(source_day: Day, target_day: Day) -> None:
        if target_day.id == source_day.id:
            raise MigrationError("Cannot migrate a day onto itself")
        if target_day.imported_from_day_id not in (None, source_day.id):
            raise MigrationError("Target day has already been imported from another day")

    # -------------------------------------------------------------------------
    # Copy passes
    # -------------------------------------------------------------------------

    def _migrate(
        self, user: User, source_day: Day, target_day: Day, settings: MigrationSettings
    ) -> int:
        source_collection = self.descendants.get_for(source_day)
        if source_collection is None:
            return 0
        target_collection = self.descendants.ensure_for(target_day)

        refs = list(source_collection.active_items)
        roots = {item.id: item for item in self.descendants.active_items(source_collection)}
        configured = {DataValidator.title_key(title) for title in user.permanent_sections}

        def merged(item: Item) -> bool:
            # A flagged section dropped from the settings migrates as a plain one
            return item.is_permanent_section and DataValidator.title_key(item.title) in configured

        # Permanent sections first, so that their target sections keep the
        # reconciled order ahead of the copied root items
        for ref in refs:
            item = roots.get(ref.id) if ref.kind == EntityKind.ITEM else None
            if item is not None and merged(item):
                self._merge_section(user, item, target_day, settings)

        migrated = 0
        for ref in refs:
            if ref.kind != EntityKind.ITEM:
                self._link(ref, target_collection, settings)
                continue

            item = roots.get(ref.id)
            if item is None or merged(item):
                continue
            if item.is_section:
                if not settings.active_item_sections:
                    continue
                if not self.copier.should_copy_section(item, settings.items):
                    continue
            elif not self.copier.should_copy_child(item, settings.items):
                continue

            self.copier.copy_tree(item, target_collection, user, settings.items)
            migrated += 1

        return migrated

    def _merge_section(
        self, user: User, section: Item, target_day: Day, settings: MigrationSettings
    ) -> None:
        """Copy a permanent section's eligible children into the target's twin."""
        source_collection = self.descendants.get_for(section)
        if source_collection is None:
            return

        target_section = self.items.find_active_section(target_day, section.title)
        if target_section is None:
            target_section = self.items.create_section(
                user, section.title, target_day, permanent=True
            )
        target_collection = self.descendants.ensure_for(target_section)

        for child in self.descendants.active_items(source_collection):
            if self.copier.should_copy_child(child, settings.items):
                self.copier.copy_tree(child, target_collection, user, settings.items)

        if settings.items.notes:
            for ref in source_collection.active_items:
                if ref.kind == EntityKind.NOTE:
                    target_collection.add_active(ref)

    @staticmethod
    def _link(ref: ChildRef, target: Descendant, settings: MigrationSettings) -> None:
        if ref.kind in EntityKind.attachable_kinds() and settings.links:
            target.add_active(ref)
        elif ref.kind == EntityKind.NOTE and settings.notes:
            target.add_active(ref)
