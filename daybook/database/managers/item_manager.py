#!/usr/bin/env python3
"""
item_manager.py
--------------------
Manager for Item entities.

Items live in exactly one collection (a day's, a list's or another item's).
Every state transition is applied together with the matching move between
the parent's active and inactive lists, inside one SAVEPOINT.

Key Features:
    - create(): new item placed into a parent container
    - set_todo / set_done / set_dropped / set_deferred: state machine
    - delete_tree(): recursive hard delete of an item and its subtree
    - permanent_section_ancestor(): nearest permanent section above an item
    - placement_for_day(): where a copy/occurrence of an item lands on a day
    - reparent(): move an item or note to another container
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Set, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from daybook.core.exceptions import StateTransitionError, ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.core.validators import DataValidator
from daybook.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)
from daybook.database.models import (
    ChildRef,
    Day,
    Descendant,
    EntityKind,
    Item,
    ItemState,
    ItemType,
    User,
    utcnow,
)
from .base_manager import BaseManager
from .descendant_manager import DescendantManager


class ItemManager(BaseManager):
    """
    Manages Item creation, state transitions and tree operations.

    Attributes:
        descendants: DescendantManager bound to the same session
    """

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        super().__init__(session, logger)
        self.descendants = DescendantManager(session, logger)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, item_id: int) -> Optional[Item]:
        return self._get_by_id(Item, item_id)

    def require(self, item: Union[Item, int]) -> Item:
        """Resolve an Item or id, raising ValidationError when missing."""
        try:
            return self._resolve_object(item, Item)
        except (TypeError, ValueError) as e:
            raise ValidationError(str(e)) from e

    def parent_collection(self, item: Item) -> Optional[Descendant]:
        """Collection holding the item, or None for a detached item."""
        return self.descendants.find_owner_of(item.reference)

    def parent_of(self, item: Item) -> Optional[Any]:
        """Container (Day, Item, List, ...) holding the item."""
        collection = self.parent_collection(item)
        return self.descendants.owner_of(collection) if collection else None

    def root_container(self, item: Item) -> Optional[Any]:
        """Outermost non-item container (a day, list or journal) above an item."""
        visited: Set[int] = set()
        current = item
        while current.id not in visited:
            visited.add(current.id)
            owner = self.parent_of(current)
            if not isinstance(owner, Item):
                return owner
            current = owner
        return None

    def copies_of(self, item: Item, on_date: Any = None) -> List[Item]:
        """
        Items whose provenance points at `item`.

        Args:
            item: Source item
            on_date: Only keep copies somewhere in the tree of the owner's
                day with this date
        """
        copies = (
            self.session.query(Item)
            .filter(Item.source_item_id == item.id)
            .order_by(Item.id)
            .all()
        )
        day_date = DataValidator.normalize_date(on_date)
        if day_date is None:
            return copies
        return [c for c in copies if self._on_day(c, item.user_id, day_date)]

    def _on_day(self, item: Item, user_id: int, day_date: Any) -> bool:
        root = self.root_container(item)
        return isinstance(root, Day) and root.user_id == user_id and root.date == day_date

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    @staticmethod
    def _normalize_rule(rule: Any) -> Optional[str]:
        if rule is None:
            return None
        if isinstance(rule, dict):
            return json.dumps(rule)
        return DataValidator.normalize_string(rule)

    @handle_db_errors
    @log_database_operation("create_item")
    def create(
        self,
        user: User,
        title: str,
        item_type: Union[ItemType, str] = ItemType.COMPLETABLE,
        parent: Optional[Any] = None,
        state: Union[ItemState, str] = ItemState.TODO,
        extra_data: Optional[Dict[str, Any]] = None,
        recurrence_rule: Any = None,
        source_item: Optional[Item] = None,
        front: bool = False,
    ) -> Item:
        """
        Create an item and place it in a parent's collection.

        Args:
            user: Owning user
            title: Item title (required, stripped)
            item_type: ItemType or its value
            parent: Container to hold the item (None leaves it detached)
            state: Initial state; non-todo items go to the inactive list
            extra_data: JSON bag (copied)
            recurrence_rule: Rule as dict or JSON text
            source_item: Provenance link
            front: Prepend to the active list instead of appending

        Returns:
            The new, flushed Item

        Raises:
            ValidationError: Missing title or unknown type/state
        """
        normalized_title = DataValidator.normalize_string(title)
        if not normalized_title:
            raise ValidationError("Item title is required")
        try:
            item_type = ItemType(item_type)
            state = ItemState(state)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        item = Item(
            user_id=user.id,
            title=normalized_title,
            item_type=item_type,
            state=state,
            extra_data=dict(extra_data or {}),
            recurrence_rule=self._normalize_rule(recurrence_rule),
            source_item_id=source_item.id if source_item is not None else None,
        )
        self.session.add(item)
        self._execute_with_retry(self.session.flush)

        if item_type.has_collection_by_default:
            self.descendants.ensure_for(item)

        if parent is not None:
            self.place(item, self.descendants.ensure_for(parent), front=front)

        return item

    def create_section(
        self, user: User, title: str, parent: Any, permanent: bool = False
    ) -> Item:
        """Create a section (optionally permanent) at the end of a parent's active list."""
        extra = {"permanent_section": True} if permanent else {}
        return self.create(
            user, title, item_type=ItemType.SECTION, parent=parent, extra_data=extra
        )

    @staticmethod
    def place(item: Item, collection: Descendant, front: bool = False) -> None:
        """Add an item to a collection on the side matching its state."""
        if ItemState(item.state).is_active:
            if front:
                collection.add_active_front(item.reference)
            else:
                collection.add_active(item.reference)
        else:
            collection.add_inactive(item.reference)

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _require_completable(self, item: Item, action: str) -> None:
        if not item.can_be_completed:
            raise StateTransitionError(
                f"Cannot {action} {ItemType(item.item_type).display_name.lower()} "
                f"item '{item.title}'"
            )

    def _move(self, item: Item, active: bool) -> None:
        collection = self.parent_collection(item)
        if collection is None:
            return
        if active:
            collection.activate(item.reference)
        else:
            collection.deactivate(item.reference)

    @handle_db_errors
    def set_done(self, item: Item) -> Item:
        """
        Mark an item done and move it to its parent's inactive list.

        Items with a recurrence rule then get their next occurrence
        scheduled; a scheduling failure is logged and does not undo the
        completion.
        """
        self._require_completable(item, "complete")
        with DatabaseOperation(self.logger, "set_done", details={"item_id": item.id}):
            with self.session.begin_nested():
                self._move(item, active=False)
                item.state = ItemState.DONE
                item.done_at = utcnow()
                self.session.flush()

        if item.has_recurrence and item.recurring_next_item_id is None:
            from daybook.services.recurrence import RecurrenceScheduler

            result = RecurrenceScheduler(self.session, self.logger).call(item)
            if not result.success:
                safe_logger(self.logger).log_warning(
                    "recurrence_not_scheduled",
                    {"item_id": item.id, "error": result.error},
                )
        return item

    @handle_db_errors
    def set_dropped(self, item: Item) -> Item:
        """Mark an item dropped and move it to its parent's inactive list."""
        self._require_completable(item, "drop")
        with DatabaseOperation(self.logger, "set_dropped", details={"item_id": item.id}):
            with self.session.begin_nested():
                self._move(item, active=False)
                item.state = ItemState.DROPPED
                item.dropped_at = utcnow()
                self.session.flush()
        return item

    @handle_db_errors
    def set_deferred(self, item: Item, deferred_to: Any) -> Item:
        """
        Mark an item deferred to a date and move it to the inactive list.

        Sections keep their 'todo' state; they are stamped and moved like
        any other item.
        """
        target = DataValidator.normalize_date(deferred_to)
        if target is None:
            raise ValidationError("A target date is required to defer an item")

        with DatabaseOperation(self.logger, "set_deferred", details={"item_id": item.id}):
            with self.session.begin_nested():
                if not item.is_section:
                    self._require_completable(item, "defer")
                    item.state = ItemState.DEFERRED
                self._move(item, active=False)
                item.deferred_at = utcnow()
                item.deferred_to = target
                self.session.flush()
        return item

    @handle_db_errors
    def set_todo(self, item: Item) -> Item:
        """
        Return an item to 'todo' and to its parent's active list.

        A scheduled next occurrence is deleted (with its subtree) and the
        link cleared; every completion stamp is cleared.
        """
        if not item.is_section:
            self._require_completable(item, "reopen")
        with DatabaseOperation(self.logger, "set_todo", details={"item_id": item.id}):
            with self.session.begin_nested():
                next_item = item.recurring_next_item
                if next_item is not None:
                    item.recurring_next_item = None
                    self.session.flush()
                    self.delete_tree(next_item)

                self._move(item, active=True)
                item.state = ItemState.TODO
                item.done_at = None
                item.dropped_at = None
                item.deferred_at = None
                item.deferred_to = None
                self.session.flush()
        return item

    # -------------------------------------------------------------------------
    # Tree operations
    # -------------------------------------------------------------------------

    def delete_tree(self, item: Item, detach: bool = True) -> int:
        """
        Hard delete an item, its collection and every item below it.

        Args:
            item: Root of the subtree
            detach: Also remove the root's reference from its parent(s)

        Returns:
            Number of items deleted
        """
        with DatabaseOperation(self.logger, "delete_item_tree", details={"item_id": item.id}):
            if detach:
                for collection in self.descendants.containing(item.reference):
                    collection.remove(item.reference)
            count = self._delete_subtree(item, set())
            self.session.flush()
        return count

    def _delete_subtree(self, item: Item, visited: Set[int]) -> int:
        if item.id in visited:
            return 0
        visited.add(item.id)

        count = 0
        collection = self.descendants.get_for(item)
        if collection is not None:
            children = [
                *self.descendants.active_items(collection),
                *self.descendants.inactive_items(collection),
            ]
            for child in children:
                count += self._delete_subtree(child, visited)
            self.session.delete(collection)

        # Null provenance and recurrence links pointing here
        referrers = self.session.query(Item).filter(
            or_(Item.source_item_id == item.id, Item.recurring_next_item_id == item.id)
        )
        for referrer in referrers:
            if referrer.source_item_id == item.id:
                referrer.source_item_id = None
            if referrer.recurring_next_item_id == item.id:
                referrer.recurring_next_item_id = None

        self.session.delete(item)
        return count + 1

    def active_todo_count(self, item: Item) -> int:
        """Number of todo items in the active subtree below an item."""
        return self._count_todo(item, set())

    def _count_todo(self, item: Item, visited: Set[int]) -> int:
        if item.id in visited:
            return 0
        visited.add(item.id)
        total = 0
        for child in self.descendants.active_items(self.descendants.get_for(item)):
            if child.is_todo:
                total += 1
            total += self._count_todo(child, visited)
        return total

    def permanent_section_ancestor(self, item: Item) -> Optional[Item]:
        """
        Nearest permanent section above an item.

        Walks up through containing collections; stops at the first
        non-item owner (a day or a list) or a detached item.
        """
        visited: Set[int] = set()
        current = item
        while current.id not in visited:
            visited.add(current.id)
            collection = self.parent_collection(current)
            if collection is None or collection.owner_type != EntityKind.ITEM.value:
                return None
            parent = self.session.get(Item, collection.owner_id)
            if parent is None:
                return None
            if parent.is_permanent_section:
                return parent
            current = parent
        return None

    def find_active_section(self, container: Any, title: str) -> Optional[Item]:
        """Active section directly under a container whose title matches (case-insensitive)."""
        key = DataValidator.title_key(title)
        collection = self.descendants.get_for(container)
        for child in self.descendants.active_items(collection):
            if child.is_section and DataValidator.title_key(child.title) == key:
                return child
        return None

    def placement_for_day(self, user: User, day: Day, item: Item) -> Descendant:
        """
        Collection on `day` that should receive a copy of `item`.

        If the item sits under a permanent section, the same-titled
        permanent section of the target day is used (created if missing);
        otherwise the day's own collection.
        """
        section = self.permanent_section_ancestor(item)
        if section is None:
            return self.descendants.ensure_for(day)

        target_section = self.find_active_section(day, section.title)
        if target_section is None:
            target_section = self.create_section(user, section.title, day, permanent=True)
        return self.descendants.ensure_for(target_section)

    @handle_db_errors
    def reparent(self, record: Any, target: Any, front: bool = False) -> Descendant:
        """
        Move an item (or note) from its current collection to `target`'s.

        Items land on the side matching their state; other records land
        in the active list. A note is only removed from its first holder.

        Returns:
            The target collection
        """
        ref = ChildRef.coerce(record)
        with DatabaseOperation(self.logger, "reparent", details={"ref": ref.to_dict()}):
            with self.session.begin_nested():
                current = self.descendants.find_owner_of(ref)
                if current is not None:
                    current.remove(ref)

                collection = self.descendants.ensure_for(target)
                if isinstance(record, Item):
                    self.place(record, collection, front=front)
                elif front:
                    collection.add_active_front(ref)
                else:
                    collection.add_active(ref)
                self.session.flush()
        return collection
