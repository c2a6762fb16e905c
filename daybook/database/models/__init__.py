"""
Database Models Package
------------------------

SQLAlchemy ORM models for the Daybook database.

This package provides a modular organization of database models:
- base: Base class and mixins
- enums: Enumeration types
- references: Typed child references and their column type
- descendant: Ordered collection owned by every container
- core: User, Day, Item
- containers: List, Journal, JournalPrompt, JournalFragment, Note

Usage:
    from daybook.database.models import Day, Item, Descendant, ChildRef
"""
# Base classes
from .base import Base, ContainerMixin, ReferenceableMixin, TimestampMixin, utcnow

# Enumerations
from .enums import DayState, EntityKind, ItemState, ItemType

# References and collections
from .references import ChildRef, ReferenceList
from .descendant import Descendant

# Core models
from .core import PERMANENT_SECTION_KEY, Day, Item, User

# Secondary containers and leaves
from .containers import Journal, JournalFragment, JournalPrompt, List, Note

# Entity kind -> model class, for resolving references
MODEL_BY_KIND = {
    EntityKind.ITEM: Item,
    EntityKind.NOTE: Note,
    EntityKind.LIST: List,
    EntityKind.JOURNAL: Journal,
    EntityKind.JOURNAL_FRAGMENT: JournalFragment,
    EntityKind.JOURNAL_PROMPT: JournalPrompt,
}

# Owner type -> model class, for resolving collection owners
CONTAINER_MODELS = {
    "Day": Day,
    "Item": Item,
    "List": List,
    "Journal": Journal,
    "JournalPrompt": JournalPrompt,
}

__all__ = [
    # Base
    "Base",
    "ContainerMixin",
    "ReferenceableMixin",
    "TimestampMixin",
    "utcnow",
    # Enums
    "DayState",
    "EntityKind",
    "ItemState",
    "ItemType",
    # References
    "ChildRef",
    "ReferenceList",
    "Descendant",
    # Core
    "PERMANENT_SECTION_KEY",
    "Day",
    "Item",
    "User",
    # Containers
    "Journal",
    "JournalFragment",
    "JournalPrompt",
    "List",
    "Note",
    # Lookups
    "MODEL_BY_KIND",
    "CONTAINER_MODELS",
]
