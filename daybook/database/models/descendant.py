"""
Ordered Collections
--------------------

The Descendant model: one ordered, nested collection per container.

Every container (Day, Item, List, Journal, JournalPrompt) owns at most one
Descendant row, linked polymorphically through (owner_type, owner_id). The
row keeps two ordered lists of child references:

    - active_items: children still being worked on (display order)
    - inactive_items: completed, dropped or deferred children

The two lists never share a reference and neither holds duplicates. Every
mutation assigns a fresh list to the column so the ORM sees the change;
persisting it is left to the caller's flush or commit.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict, Iterable, List

# --- Third party ---
from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

# --- Local imports ---
from .base import Base, TimestampMixin
from .enums import EntityKind
from .references import ChildRef, ReferenceList, dump_refs


class Descendant(Base, TimestampMixin):
    """
    Ordered collection of child references owned by one container.

    Attributes:
        id: Primary key
        owner_type: Class name of the owning container ('Day', 'Item', ...)
        owner_id: Primary key of the owning container
        active_items: Ordered active child references
        inactive_items: Ordered inactive child references

    Notes:
        - Adding is idempotent
        - Adding a reference held by the other list moves it
        - reorder_active keeps only references already present
    """

    __tablename__ = "descendants"
    __table_args__ = (
        UniqueConstraint("owner_type", "owner_id", name="uq_descendant_owner"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    active_items: Mapped[List[ChildRef]] = mapped_column(
        ReferenceList, nullable=False, default=list
    )
    inactive_items: Mapped[List[ChildRef]] = mapped_column(
        ReferenceList, nullable=False, default=list
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("active_items", [])
        kwargs.setdefault("inactive_items", [])
        super().__init__(**kwargs)

    # ---- Active list ----
    def add_active(self, ref: Any) -> None:
        """Append a reference to the active list (moving it out of inactive)."""
        ref = ChildRef.coerce(ref)
        if ref in self.inactive_items:
            self.inactive_items = [r for r in self.inactive_items if r != ref]
        if ref not in self.active_items:
            self.active_items = [*self.active_items, ref]

    def add_active_front(self, ref: Any) -> None:
        """Prepend a reference to the active list (moving it out of inactive)."""
        ref = ChildRef.coerce(ref)
        if ref in self.inactive_items:
            self.inactive_items = [r for r in self.inactive_items if r != ref]
        if ref not in self.active_items:
            self.active_items = [ref, *self.active_items]

    def remove_active(self, ref: Any) -> None:
        """Remove a reference from the active list; absent is a no-op."""
        ref = ChildRef.coerce(ref)
        if ref in self.active_items:
            self.active_items = [r for r in self.active_items if r != ref]

    def contains_active(self, ref: Any) -> bool:
        return ChildRef.coerce(ref) in self.active_items

    def reorder_active(self, order: Iterable[Any]) -> None:
        """
        Replace the active order with `order`, restricted to current members.

        References in `order` that are not already active are dropped;
        active references missing from `order` are removed.
        """
        current = set(self.active_items)
        self.active_items = self._dedupe(
            ref for ref in map(ChildRef.coerce, order) if ref in current
        )

    # ---- Inactive list ----
    def add_inactive(self, ref: Any) -> None:
        """Append a reference to the inactive list (moving it out of active)."""
        ref = ChildRef.coerce(ref)
        if ref in self.active_items:
            self.active_items = [r for r in self.active_items if r != ref]
        if ref not in self.inactive_items:
            self.inactive_items = [*self.inactive_items, ref]

    def remove_inactive(self, ref: Any) -> None:
        """Remove a reference from the inactive list; absent is a no-op."""
        ref = ChildRef.coerce(ref)
        if ref in self.inactive_items:
            self.inactive_items = [r for r in self.inactive_items if r != ref]

    def contains_inactive(self, ref: Any) -> bool:
        return ChildRef.coerce(ref) in self.inactive_items

    def reorder_inactive(self, order: Iterable[Any]) -> None:
        """Same as reorder_active, for the inactive list."""
        current = set(self.inactive_items)
        self.inactive_items = self._dedupe(
            ref for ref in map(ChildRef.coerce, order) if ref in current
        )

    # ---- Moves ----
    def deactivate(self, ref: Any) -> None:
        """Move a reference from active to inactive (appended)."""
        self.add_inactive(ref)

    def activate(self, ref: Any) -> None:
        """Move a reference from inactive to active (appended)."""
        self.add_active(ref)

    def remove(self, ref: Any) -> None:
        """Remove a reference from whichever list holds it."""
        self.remove_active(ref)
        self.remove_inactive(ref)

    # ---- Queries ----
    def contains(self, ref: Any) -> bool:
        ref = ChildRef.coerce(ref)
        return ref in self.active_items or ref in self.inactive_items

    def all_refs(self) -> List[ChildRef]:
        """Active references followed by inactive ones."""
        return [*self.active_items, *self.inactive_items]

    def active_ids(self, kind: EntityKind) -> List[int]:
        return [ref.id for ref in self.active_items if ref.kind == kind]

    def inactive_ids(self, kind: EntityKind) -> List[int]:
        return [ref.id for ref in self.inactive_items if ref.kind == kind]

    @property
    def is_empty(self) -> bool:
        return not self.active_items and not self.inactive_items

    def snapshot(self) -> Dict[str, List[Dict[str, int]]]:
        """Serializable view: {"active": [...], "inactive": [...]}."""
        return {
            "active": dump_refs(self.active_items),
            "inactive": dump_refs(self.inactive_items),
        }

    @staticmethod
    def _dedupe(refs: Iterable[ChildRef]) -> List[ChildRef]:
        seen: set = set()
        result: List[ChildRef] = []
        for ref in refs:
            if ref not in seen:
                seen.add(ref)
                result.append(ref)
        return result

    def __repr__(self) -> str:
        return (
            f"<Descendant(owner={self.owner_type}:{self.owner_id}, "
            f"active={len(self.active_items)}, inactive={len(self.inactive_items)})>"
        )

    def __str__(self) -> str:
        return f"Collection of {self.owner_type} {self.owner_id}"

