#!/usr/bin/env python3
"""
migration_options.py
---------------------

Declarative options controlling what a day migration carries forward.

User settings store these as a nested mapping under
`day_migration_settings`; this module normalizes that mapping (missing
keys, legacy aliases, string booleans) into a MigrationSettings instance
used by the copy, migration and defer services.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional

from daybook.core.validators import DataValidator


# Keys accepted for sections_with_no_active_items, in priority order
SECTION_FLAG_ALIASES = (
    "sections_with_no_active_items",
    "sectionsWithNoActiveItems",
    "sections",
)


@dataclass
class OptionSpec:
    """
    Description of one boolean option.

    Attributes:
        default: Value used when the option is absent
        label: Short human-readable label
        description: What the option controls
    """

    default: bool
    label: str
    description: str


MIGRATION_OPTIONS: Dict[str, OptionSpec] = {
    "links": OptionSpec(
        True, "Migrate Links", "Carry linked lists and journals to the new day"
    ),
    "notes": OptionSpec(
        False, "Migrate Notes", "Carry notes attached to the day itself"
    ),
    "active_item_sections": OptionSpec(
        True,
        "Migrate Root Sections",
        "Copy non-permanent sections sitting at the root of the day",
    ),
}

ITEM_OPTIONS: Dict[str, OptionSpec] = {
    "sections_with_no_active_items": OptionSpec(
        True,
        "Migrate Empty Sections",
        "Copy sections even when they have no active items "
        "(inactive items are never copied)",
    ),
    "notes": OptionSpec(True, "Migrate Item Notes", "Keep notes linked inside items"),
}


def _flag(source: Mapping[str, Any], keys, default: bool) -> bool:
    """First present key of `keys` as a bool, else default."""
    for key in keys:
        if key in source and source[key] is not None:
            value = DataValidator.normalize_bool(source[key])
            if value is not None:
                return value
    return default


@dataclass
class ItemMigrationSettings:
    """Per-item options of a migration."""

    sections_with_no_active_items: bool = ITEM_OPTIONS[
        "sections_with_no_active_items"
    ].default
    notes: bool = ITEM_OPTIONS["notes"].default

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ItemMigrationSettings":
        data = data or {}
        return cls(
            sections_with_no_active_items=_flag(
                data,
                SECTION_FLAG_ALIASES,
                ITEM_OPTIONS["sections_with_no_active_items"].default,
            ),
            notes=_flag(data, ("notes",), ITEM_OPTIONS["notes"].default),
        )


@dataclass
class MigrationSettings:
    """
    Normalized day-migration options.

    Attributes:
        links: Re-attach root List/Journal references to the new day
        notes: Re-attach root Note references to the new day
        active_item_sections: Copy non-permanent root sections
        items: Per-item options (empty sections, item notes)
    """

    links: bool = MIGRATION_OPTIONS["links"].default
    notes: bool = MIGRATION_OPTIONS["notes"].default
    active_item_sections: bool = MIGRATION_OPTIONS["active_item_sections"].default
    items: ItemMigrationSettings = field(default_factory=ItemMigrationSettings)

    @classmethod
    def defaults(cls) -> "MigrationSettings":
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "MigrationSettings":
        """
        Build settings from a (possibly partial) user mapping.

        Args:
            data: Mapping as stored in user settings, or None

        Returns:
            MigrationSettings with defaults filled in

        Raises:
            ValidationError: If a flag holds a value that is not boolean-like
        """
        data = dict(data or {})
        items = data.get("items")
        if not isinstance(items, Mapping):
            items = {}
        return cls(
            links=_flag(data, ("links",), MIGRATION_OPTIONS["links"].default),
            notes=_flag(data, ("notes",), MIGRATION_OPTIONS["notes"].default),
            active_item_sections=_flag(
                data,
                ("active_item_sections",),
                MIGRATION_OPTIONS["active_item_sections"].default,
            ),
            items=ItemMigrationSettings.from_dict(items),
        )

    @classmethod
    def for_user(cls, user: Any) -> "MigrationSettings":
        """Settings stored on a user (defaults when the user has none)."""
        if user is None:
            return cls.defaults()
        return cls.from_dict(user.day_migration_settings)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
