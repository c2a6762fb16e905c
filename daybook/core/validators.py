#!/usr/bin/env python3
"""
validators.py
--------------------
Input normalization shared by the managers, services and CLI.

Dates arrive as ISO strings from the CLI and settings, as date objects
from services; titles are compared case-insensitively; settings flags
may be written as "yes"/"no" in YAML or JSON.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from .exceptions import ValidationError

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


class DataValidator:
    """Static normalizers; each returns None for missing input."""

    @staticmethod
    def normalize_date(date_value: Any) -> Optional[date]:
        """
        Coerce a date, datetime or 'YYYY-MM-DD...' string to a date.

        Raises:
            ValidationError: If a string does not start with an ISO date
        """
        # datetime is a subclass of date
        if isinstance(date_value, datetime):
            return date_value.date()
        if isinstance(date_value, date):
            return date_value
        if not isinstance(date_value, str):
            return None
        try:
            return date.fromisoformat(date_value.strip()[:10])
        except ValueError as e:
            raise ValidationError(
                f"Invalid date format: '{date_value}' (expected YYYY-MM-DD)"
            ) from e

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """Stripped text, or None when empty."""
        if value is None:
            return None
        return str(value).strip() or None

    @staticmethod
    def title_key(value: Any) -> str:
        """Casefolded title used to match sections by name."""
        return (DataValidator.normalize_string(value) or "").casefold()

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Read a settings flag.

        Accepts booleans, 0/1 and the usual words (true/false, yes/no,
        on/off).

        Raises:
            ValidationError: For other numbers or words
        """
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            if value in (0, 1):
                return bool(value)
            raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            raise ValidationError(f"Cannot convert '{value}' to boolean")
        return bool(value)

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        # bool is an int subclass; a flag is never a count
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, float) and not value.is_integer():
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
