#!/usr/bin/env python3
"""
descendant_manager.py
--------------------
Manager for ordered collections (Descendant rows).

A container never holds an ORM relationship to its collection; this
manager resolves it through (owner_type, owner_id) and answers the global
"which collection holds this reference" query.

Key Features:
    - get/ensure/destroy the collection of a container
    - containing(): every collection holding a reference
    - find_owner_of(): first collection holding a reference
    - resolve(): reference -> model instance
    - owner_of(): collection -> owning container
    - ensure_unique_titles(): case-insensitive de-duplication of active items
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import Text, or_, type_coerce
from sqlalchemy.orm import Session

from daybook.core.exceptions import ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.core.validators import DataValidator
from daybook.database.decorators import DatabaseOperation, handle_db_errors
from daybook.database.models import (
    CONTAINER_MODELS,
    MODEL_BY_KIND,
    ChildRef,
    Descendant,
    EntityKind,
    Item,
)
from .base_manager import BaseManager


@dataclass
class UniqueTitlesResult:
    """Outcome of ensure_unique_titles."""

    success: bool
    removed_count: int = 0
    duplicates: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


class DescendantManager(BaseManager):
    """
    Lookup and lifecycle of ordered collections.

    Collections are created lazily by ensure_for() and destroyed explicitly
    with their owner (destroy_for()); nothing here flushes except creation.
    """

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        super().__init__(session, logger)

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    @staticmethod
    def _owner_key(owner: Any) -> tuple:
        owner_type = getattr(owner, "owner_type", None)
        if owner_type not in CONTAINER_MODELS:
            raise ValidationError(f"{type(owner).__name__} cannot own a collection")
        if getattr(owner, "id", None) is None:
            raise ValidationError(f"{owner_type} must be persisted to own a collection")
        return owner_type, owner.id

    def get_for(self, owner: Any) -> Optional[Descendant]:
        """Collection owned by a container, or None."""
        owner_type, owner_id = self._owner_key(owner)
        return (
            self.session.query(Descendant)
            .filter_by(owner_type=owner_type, owner_id=owner_id)
            .first()
        )

    @handle_db_errors
    def ensure_for(self, owner: Any) -> Descendant:
        """
        Collection owned by a container, created (empty) when missing.

        Args:
            owner: Persisted container (Day, Item, List, Journal, JournalPrompt)

        Returns:
            The owner's Descendant
        """
        owner_type, owner_id = self._owner_key(owner)
        descendant, created = self._get_or_create(
            Descendant, {"owner_type": owner_type, "owner_id": owner_id}
        )
        if created:
            safe_logger(self.logger).log_debug(
                "collection_created", {"owner_type": owner_type, "owner_id": owner_id}
            )
        return descendant

    def destroy_for(self, owner: Any) -> bool:
        """Delete the collection owned by a container; True if one existed."""
        descendant = self.get_for(owner)
        if descendant is None:
            return False
        self.session.delete(descendant)
        return True

    def owner_of(self, descendant: Descendant) -> Optional[Any]:
        """The container that owns a collection."""
        model_class = CONTAINER_MODELS.get(descendant.owner_type)
        if model_class is None:
            return None
        return self.session.get(model_class, descendant.owner_id)

    # -------------------------------------------------------------------------
    # Reference queries
    # -------------------------------------------------------------------------

    def containing(self, ref: Any) -> List[Descendant]:
        """
        Every collection holding a reference, in either list.

        The serialized reference is matched with LIKE and each candidate is
        confirmed against its parsed lists.
        """
        ref = ChildRef.coerce(ref)
        pattern = f"%{ref.pattern()}%"
        candidates = (
            self.session.query(Descendant)
            .filter(
                or_(
                    type_coerce(Descendant.active_items, Text).like(pattern),
                    type_coerce(Descendant.inactive_items, Text).like(pattern),
                )
            )
            .order_by(Descendant.id)
            .all()
        )
        return [d for d in candidates if d.contains(ref)]

    def find_owner_of(self, ref: Any) -> Optional[Descendant]:
        """
        The collection holding a reference, or None.

        Items sit in exactly one collection; leaves such as notes can be
        linked from several, in which case the oldest collection wins.
        """
        matches = self.containing(ref)
        return matches[0] if matches else None

    def resolve(self, ref: Any) -> Optional[Any]:
        """Model instance named by a reference (None for unknown kinds or stale ids)."""
        ref = ChildRef.coerce(ref)
        model_class = MODEL_BY_KIND.get(ref.kind)
        if model_class is None:
            return None
        return self.session.get(model_class, ref.id)

    def active_items(self, descendant: Optional[Descendant]) -> List[Item]:
        """Items of the active list, in order, skipping stale references."""
        return self._load_items(descendant.active_ids(EntityKind.ITEM) if descendant else [])

    def inactive_items(self, descendant: Optional[Descendant]) -> List[Item]:
        """Items of the inactive list, in order, skipping stale references."""
        return self._load_items(
            descendant.inactive_ids(EntityKind.ITEM) if descendant else []
        )

    def _load_items(self, ids: List[int]) -> List[Item]:
        if not ids:
            return []
        by_id = {item.id: item for item in self.session.query(Item).filter(Item.id.in_(ids))}
        return [by_id[i] for i in ids if i in by_id]

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def ensure_unique_titles(self, descendant: Optional[Descendant]) -> UniqueTitlesResult:
        """
        Remove active items whose title repeats an earlier one (case-insensitive).

        The first occurrence is kept; non-item references and stale item
        references are left in place.

        Returns:
            UniqueTitlesResult with the removed references
        """
        if descendant is None:
            return UniqueTitlesResult(success=True)

        with DatabaseOperation(self.logger, "ensure_unique_titles"):
            items = {item.id: item for item in self.active_items(descendant)}
            seen: set = set()
            kept: List[ChildRef] = []
            duplicates: List[Dict[str, Any]] = []

            for ref in descendant.active_items:
                item = items.get(ref.id) if ref.kind == EntityKind.ITEM else None
                if item is None:
                    kept.append(ref)
                    continue
                key = DataValidator.title_key(item.title)
                if key in seen:
                    duplicates.append({"id": item.id, "title": item.title})
                else:
                    seen.add(key)
                    kept.append(ref)

            if duplicates:
                descendant.active_items = kept
                self.session.flush()

        return UniqueTitlesResult(
            success=True, removed_count=len(duplicates), duplicates=duplicates
        )
