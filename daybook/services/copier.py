#!/usr/bin/env python3
"""
copier.py
-------------------
Recursive subtree copy of an item into another collection.

Used by day migration and by deferral. The requested root is always
cloned; below it only work that is still pending is carried:

    - only references from the source's active list are followed
    - non-section children are copied only in 'todo'
    - nested permanent sections are never copied
    - sections without pending work are copied empty, or skipped when
      `items.sections_with_no_active_items` is off
    - note references are linked (not cloned) when `items.notes` is on

Clones keep title, type, extra data (deep copy, minus the
permanent-section flag), deferral stamps and recurrence rule, and point
back at their source through `source_item_id`.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.core.exceptions import DatabaseError, ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.database.configs.migration_options import (
    ItemMigrationSettings,
    MigrationSettings,
)
from daybook.database.decorators import log_database_operation
from daybook.database.managers.item_manager import ItemManager
from daybook.database.models import (
    PERMANENT_SECTION_KEY,
    Descendant,
    EntityKind,
    Item,
    ItemState,
    User,
)


@dataclass
class CopyResult:
    """Outcome of SubtreeCopier.call."""

    success: bool
    new_item: Optional[Item] = None
    error: Optional[str] = None


class SubtreeCopier:
    """Clones an item and its pending subtree into a target collection."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.items = ItemManager(session, logger)
        self.descendants = self.items.descendants

    @log_database_operation("copy_subtree")
    def call(
        self,
        source: Item,
        target: Descendant,
        user: Optional[User] = None,
        settings: Optional[ItemMigrationSettings] = None,
    ) -> CopyResult:
        """
        Copy `source` (and its eligible subtree) into `target`.

        Args:
            source: Item to clone
            target: Collection receiving the clone (active if the source is
                todo, inactive otherwise)
            user: Owner of the clones (defaults to the source's owner)
            settings: Per-item options (defaults to the owner's settings)

        Returns:
            CopyResult with the new root item; nothing is created on failure
        """
        user = user or source.user
        settings = settings or MigrationSettings.for_user(user).items

        try:
            with self.session.begin_nested():
                new_item = self.copy_tree(source, target, user, settings)
                self.session.flush()
        except (DatabaseError, ValidationError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "copy_subtree", "source_item_id": source.id}
            )
            return CopyResult(success=False, error=str(e))

        return CopyResult(success=True, new_item=new_item)

    # -------------------------------------------------------------------------
    # Recursion
    # -------------------------------------------------------------------------

    def copy_tree(
        self,
        source: Item,
        target: Descendant,
        user: User,
        settings: ItemMigrationSettings,
    ) -> Item:
        """Copy without opening a savepoint; the caller owns the transaction."""
        return self._copy(source, target, user, settings, set())

    def _copy(
        self,
        source: Item,
        target: Descendant,
        user: User,
        settings: ItemMigrationSettings,
        visited: Set[int],
    ) -> Item:
        visited.add(source.id)
        clone = self._clone(source, user)
        self.items.place(clone, target)

        source_collection = self.descendants.get_for(source)
        if source_collection is None:
            return clone

        if source.is_section and not self.has_pending_work(source):
            if settings.sections_with_no_active_items:
                self.descendants.ensure_for(clone)
                self._link_notes(source_collection, clone, settings)
            return clone

        children = [
            child
            for child in self.descendants.active_items(source_collection)
            if child.id not in visited and self.should_copy_child(child, settings)
        ]
        if children or self._has_notes(source_collection, settings):
            clone_collection = self.descendants.ensure_for(clone)
            for child in children:
                self._copy(child, clone_collection, user, settings, visited)
            self._link_notes(source_collection, clone, settings)

        return clone

    def _clone(self, source: Item, user: User) -> Item:
        extra_data = copy.deepcopy(source.extra_data or {})
        extra_data.pop(PERMANENT_SECTION_KEY, None)

        clone = self.items.create(
            user,
            source.title,
            item_type=source.item_type,
            state=source.state,
            extra_data=extra_data,
            recurrence_rule=source.recurrence_rule,
            source_item=source,
        )
        clone.deferred_at = source.deferred_at
        clone.deferred_to = source.deferred_to
        return clone

    # -------------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------------

    def should_copy_child(self, item: Item, settings: ItemMigrationSettings) -> bool:
        """Whether an active child reference is carried into the clone."""
        if item.is_permanent_section:
            return False
        if not item.is_section:
            return ItemState(item.state) == ItemState.TODO
        return self.should_copy_section(item, settings)

    def should_copy_section(self, item: Item, settings: ItemMigrationSettings) -> bool:
        """Whether a section is worth copying, ignoring its permanent flag."""
        collection = self.descendants.get_for(item)
        if collection is None or not collection.active_ids(EntityKind.ITEM):
            return True
        if settings.sections_with_no_active_items:
            return True
        return self.has_pending_work(item)

    def has_pending_work(self, section: Item, visited: Optional[Set[int]] = None) -> bool:
        """
        Whether a section's active tree holds a todo non-section item.

        Only nested sections are descended into.
        """
        visited = visited if visited is not None else set()
        if section.id in visited:
            return False
        visited.add(section.id)

        children = self.descendants.active_items(self.descendants.get_for(section))
        if any(not c.is_section and c.is_todo for c in children):
            return True
        return any(
            self.has_pending_work(c, visited) for c in children if c.is_section
        )

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    @staticmethod
    def _has_notes(collection: Descendant, settings: ItemMigrationSettings) -> bool:
        return settings.notes and bool(collection.active_ids(EntityKind.NOTE))

    def _link_notes(
        self, source: Descendant, clone: Item, settings: ItemMigrationSettings
    ) -> None:
        if not self._has_notes(source, settings):
            return
        clone_collection = self.descendants.ensure_for(clone)
        for ref in source.active_items:
            if ref.kind == EntityKind.NOTE:
                clone_collection.add_active(ref)
