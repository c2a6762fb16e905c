"""
Enumeration Types
------------------

Enum classes for the Daybook database models.

Enums:
    - EntityKind: Type tag of a child reference inside a collection
    - ItemType: Behaviour of an item (completable, section, reusable, trackable)
    - ItemState: Completion state of an item
    - DayState: Whether a day is open for editing or closed

These enums provide type safety and consistent categorization across the database.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import List


class EntityKind(str, Enum):
    """
    Enumeration of entity kinds that can be referenced from a collection.

    The value is the persisted key of a reference map ({"Item": 12}).
    - ITEM: Todo, section, reusable or trackable item (container)
    - LINK: External link (leaf, owned outside the core)
    - NOTE: Free-standing note (leaf, may be linked from several collections)
    - LIST: Reusable list (container)
    - JOURNAL: Daily journal (container)
    - JOURNAL_FRAGMENT: Piece of journal text (leaf)
    - JOURNAL_PROMPT: Journal prompt (container)
    """

    ITEM = "Item"
    LINK = "Link"
    NOTE = "Note"
    LIST = "List"
    JOURNAL = "Journal"
    JOURNAL_FRAGMENT = "JournalFragment"
    JOURNAL_PROMPT = "JournalPrompt"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available entity kind choices."""
        return [kind.value for kind in cls]

    @classmethod
    def container_kinds(cls) -> List["EntityKind"]:
        """Get kinds whose entities own a collection of their own."""
        return [cls.ITEM, cls.LIST, cls.JOURNAL, cls.JOURNAL_PROMPT]

    @classmethod
    def attachable_kinds(cls) -> List["EntityKind"]:
        """Get kinds carried to a new day as links rather than copied."""
        return [cls.LIST, cls.JOURNAL]

    @property
    def is_container(self) -> bool:
        """Check if entities of this kind own a collection."""
        return self in self.container_kinds()


class ItemType(str, Enum):
    """
    Enumeration of item types.

    - COMPLETABLE: Standard todo that can be done, dropped or deferred
    - SECTION: Organizational header, always in 'todo'
    - REUSABLE: Template that can be reused (e.g. shopping list)
    - TRACKABLE: Habit or metric, always in 'todo'
    """

    COMPLETABLE = "completable"
    SECTION = "section"
    REUSABLE = "reusable"
    TRACKABLE = "trackable"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available item type choices."""
        return [item_type.value for item_type in cls]

    @classmethod
    def state_locked_types(cls) -> List["ItemType"]:
        """Get types pinned to the 'todo' state."""
        return [cls.SECTION, cls.TRACKABLE]

    @property
    def can_be_completed(self) -> bool:
        """Check if items of this type accept done/dropped/deferred."""
        return self in (self.COMPLETABLE, self.REUSABLE)

    @property
    def has_collection_by_default(self) -> bool:
        """Check if items of this type get a collection on creation."""
        return self in (self.SECTION, self.REUSABLE)

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.title()


class ItemState(str, Enum):
    """
    Enumeration of item states.

    - TODO: Active, not yet done
    - DONE: Completed
    - DROPPED: Abandoned
    - DEFERRED: Postponed to a future day
    """

    TODO = "todo"
    DONE = "done"
    DROPPED = "dropped"
    DEFERRED = "deferred"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available item state choices."""
        return [state.value for state in cls]

    @classmethod
    def inactive_states(cls) -> List["ItemState"]:
        """Get states whose items live in the parent's inactive list."""
        return [cls.DONE, cls.DROPPED, cls.DEFERRED]

    @property
    def is_active(self) -> bool:
        """Check if items in this state belong to the active list."""
        return self == self.TODO


class DayState(str, Enum):
    """
    Enumeration of day states.

    - OPEN: Day is active and can be edited
    - CLOSED: Day is archived
    """

    OPEN = "open"
    CLOSED = "closed"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available day state choices."""
        return [state.value for state in cls]
