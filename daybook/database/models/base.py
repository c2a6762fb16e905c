"""
Base Classes and Mixins
------------------------

Foundational ORM classes for the Daybook database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - TimestampMixin: created_at / updated_at columns
    - ContainerMixin: Marks a model able to own one ordered collection

This module provides the core infrastructure that other model modules build upon.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone
from typing import TYPE_CHECKING

# --- Third party ---
from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if TYPE_CHECKING:
    from .references import ChildRef


def utcnow() -> datetime:
    """Timezone-aware current time used for every timestamp column."""
    return datetime.now(timezone.utc)


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Serves as the declarative base for SQLAlchemy models and provides
    access to the metadata object for table creation and migrations.
    """

    pass


# --- Timestamps ---
class TimestampMixin:
    """
    Mixin adding creation and modification timestamps.

    Attributes:
        created_at: When this record was created
        updated_at: When this record was last updated
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# --- Collections ---
class ReferenceableMixin:
    """
    Mixin for models that can appear as a child reference in a collection.

    The reference kind is the class name, which must be an EntityKind value.
    """

    @property
    def reference(self) -> "ChildRef":
        """This entity as a typed child reference."""
        from .references import ChildRef, EntityKind

        return ChildRef(EntityKind(type(self).__name__), self.id)  # type: ignore[attr-defined]


class ContainerMixin:
    """
    Mixin for models that can own an ordered collection (Descendant).

    The collection is linked polymorphically through (owner_type, owner_id),
    where owner_type is the class name.
    """

    @property
    def owner_type(self) -> str:
        """Discriminator stored on the owned Descendant row."""
        return type(self).__name__
