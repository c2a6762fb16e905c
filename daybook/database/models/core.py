"""
Core Models
------------

Central models for the Daybook database.

Models:
    - User: Owner of every record, carries per-user settings
    - Day: One calendar day of a user's task list (root container)
    - Item: Todo, section, reusable list or trackable habit (container)

Day and Item own an ordered collection (see descendant.Descendant) through
their (owner_type, owner_id) key; there is no ORM relationship to it.
"""
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from daybook.core.exceptions import StateTransitionError

from .base import Base, ContainerMixin, ReferenceableMixin, TimestampMixin, utcnow
from .enums import DayState, ItemState, ItemType


PERMANENT_SECTION_KEY = "permanent_section"


# ----- User -----
class User(Base, TimestampMixin):
    """
    Owner of days, items, lists and journals.

    Attributes:
        id: Primary key
        email: Unique login e-mail
        name: Display name
        settings: JSON bag of user preferences

    Settings keys used by the core:
        permanent_sections: Ordered list of section titles every day gets
        day_migration_settings: Options for carrying a day forward
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    days: Mapped[List["Day"]] = relationship(
        "Day", back_populates="user", cascade="all, delete-orphan"
    )
    items: Mapped[List["Item"]] = relationship(
        "Item", back_populates="user", cascade="all, delete-orphan"
    )

    def _update_settings(self, key: str, value: Any) -> None:
        # New dict so the JSON column is flagged dirty
        self.settings = {**(self.settings or {}), key: value}

    @property
    def permanent_sections(self) -> List[str]:
        """Configured permanent section titles, blanks removed."""
        titles = (self.settings or {}).get("permanent_sections") or []
        return [str(t).strip() for t in titles if t is not None and str(t).strip()]

    @permanent_sections.setter
    def permanent_sections(self, titles: List[str]) -> None:
        self._update_settings("permanent_sections", list(titles))

    @property
    def day_migration_settings(self) -> Dict[str, Any]:
        return dict((self.settings or {}).get("day_migration_settings") or {})

    @day_migration_settings.setter
    def day_migration_settings(self, value: Dict[str, Any]) -> None:
        self._update_settings("day_migration_settings", dict(value))

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"

    def __str__(self) -> str:
        return self.name or self.email


# ----- Day -----
class Day(Base, TimestampMixin, ContainerMixin):
    """
    A single day of a user's list; the root container of that day's items.

    Attributes:
        id: Primary key
        user_id: Owning user
        date: Calendar date (unique per user)
        state: open or closed
        closed_at: Last time the day was closed
        reopened_at: Last time a closed day was reopened
        imported_from_day_id: Day this one was migrated from
        imported_to_day_id: Day this one was migrated into
        imported_at: When this day was migrated forward

    Notes:
        Import links are written once by day migration and never cleared.
    """

    __tablename__ = "days"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_day_user_date"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    state: Mapped[DayState] = mapped_column(
        SQLEnum(DayState, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=DayState.OPEN,
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    reopened_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    imported_from_day_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("days.id", ondelete="SET NULL")
    )
    imported_to_day_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("days.id", ondelete="SET NULL")
    )
    imported_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    user: Mapped["User"] = relationship("User", back_populates="days")
    imported_from_day: Mapped[Optional["Day"]] = relationship(
        "Day",
        remote_side="Day.id",
        foreign_keys=[imported_from_day_id],
        post_update=True,
    )
    imported_to_day: Mapped[Optional["Day"]] = relationship(
        "Day",
        remote_side="Day.id",
        foreign_keys=[imported_to_day_id],
        post_update=True,
    )

    # ---- State ----
    @property
    def is_open(self) -> bool:
        return self.state == DayState.OPEN

    @property
    def is_closed(self) -> bool:
        return self.state == DayState.CLOSED

    def close(self) -> None:
        """Mark closed and stamp closed_at."""
        self.state = DayState.CLOSED
        self.closed_at = utcnow()

    def reopen(self) -> None:
        """Mark open again and stamp reopened_at."""
        self.state = DayState.OPEN
        self.reopened_at = utcnow()

    # ---- Import chain ----
    @property
    def is_imported(self) -> bool:
        """This day received a migration."""
        return self.imported_from_day_id is not None

    @property
    def has_been_imported(self) -> bool:
        """This day was already migrated forward."""
        return self.imported_to_day_id is not None

    def import_chain_from(self) -> List["Day"]:
        """Days this one descends from, nearest first."""
        chain: List[Day] = []
        current = self.imported_from_day
        while current is not None and current not in chain:
            chain.append(current)
            current = current.imported_from_day
        return chain

    def import_chain_to(self) -> List["Day"]:
        """Days this one was carried into, nearest first."""
        chain: List[Day] = []
        current = self.imported_to_day
        while current is not None and current not in chain:
            chain.append(current)
            current = current.imported_to_day
        return chain

    def __repr__(self) -> str:
        return f"<Day(id={self.id}, date={self.date}, state={self.state})>"

    def __str__(self) -> str:
        return self.date.isoformat() if self.date else "Day"


# ----- Item -----
class Item(Base, TimestampMixin, ContainerMixin, ReferenceableMixin):
    """
    A unit of work, a section header, a reusable list or a habit.

    Attributes:
        id: Primary key
        user_id: Owning user
        title: Display title
        item_type: completable, section, reusable or trackable
        state: todo, done, dropped or deferred
        done_at / dropped_at / deferred_at: Transition timestamps
        deferred_to: Target date of the last deferral
        extra_data: JSON bag (holds the permanent_section flag)
        recurrence_rule: JSON text {frequency, interval?, days_of_week?}
        source_item_id: Item this one was copied from (provenance)
        recurring_next_item_id: Next scheduled occurrence

    Notes:
        - Sections and trackables are always in 'todo'
        - Provenance and recurrence links are nulled when the target is deleted
    """

    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint(
            "item_type NOT IN ('section', 'trackable') OR state = 'todo'",
            name="ck_item_locked_types_todo",
        ),
        CheckConstraint("title != ''", name="ck_item_non_empty_title"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    item_type: Mapped[ItemType] = mapped_column(
        SQLEnum(ItemType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ItemType.COMPLETABLE,
    )
    state: Mapped[ItemState] = mapped_column(
        SQLEnum(ItemState, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ItemState.TODO,
        index=True,
    )
    done_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    dropped_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    deferred_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    deferred_to: Mapped[Optional[date]] = mapped_column(Date)
    extra_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    recurrence_rule: Mapped[Optional[str]] = mapped_column(Text)
    source_item_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("items.id", ondelete="SET NULL"), index=True
    )
    recurring_next_item_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("items.id", ondelete="SET NULL")
    )

    user: Mapped["User"] = relationship("User", back_populates="items")
    source_item: Mapped[Optional["Item"]] = relationship(
        "Item", remote_side="Item.id", foreign_keys=[source_item_id]
    )
    recurring_next_item: Mapped[Optional["Item"]] = relationship(
        "Item", remote_side="Item.id", foreign_keys=[recurring_next_item_id]
    )

    # ---- Validation ----
    @validates("state", "item_type")
    def _validate_locked_state(self, key: str, value: Any) -> Any:
        item_type = value if key == "item_type" else self.item_type
        state = value if key == "state" else self.state
        if (
            item_type is not None
            and state is not None
            and ItemType(item_type) in ItemType.state_locked_types()
            and ItemState(state) != ItemState.TODO
        ):
            raise StateTransitionError(
                f"{ItemType(item_type).display_name} items must stay in 'todo'"
            )
        return value

    # ---- Computed properties ----
    @property
    def is_todo(self) -> bool:
        return self.state == ItemState.TODO

    @property
    def is_section(self) -> bool:
        return self.item_type == ItemType.SECTION

    @property
    def can_be_completed(self) -> bool:
        return self.item_type is not None and ItemType(self.item_type).can_be_completed

    @property
    def is_permanent_section(self) -> bool:
        return self.is_section and bool((self.extra_data or {}).get(PERMANENT_SECTION_KEY))

    @property
    def has_recurrence(self) -> bool:
        return bool(self.recurrence_rule and self.recurrence_rule.strip())

    @property
    def is_deferred(self) -> bool:
        """Deferred state, or a section stamped by a deferral."""
        if self.state == ItemState.DEFERRED:
            return True
        return self.deferred_at is not None and self.deferred_to is not None

    @property
    def recurrence(self) -> Optional[Dict[str, Any]]:
        """Parsed recurrence rule, None when absent or malformed."""
        if not self.has_recurrence:
            return None
        try:
            rule = json.loads(self.recurrence_rule)
        except (TypeError, ValueError):
            return None
        return rule if isinstance(rule, dict) else None

    def mark_permanent_section(self) -> None:
        self.extra_data = {**(self.extra_data or {}), PERMANENT_SECTION_KEY: True}

    def __repr__(self) -> str:
        return (
            f"<Item(id={self.id}, title={self.title!r}, "
            f"type={self.item_type}, state={self.state})>"
        )

    def __str__(self) -> str:
        return self.title
