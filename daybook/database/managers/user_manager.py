#!/usr/bin/env python3
"""
user_manager.py
--------------------
Manager for User entities and their settings.

Settings can be edited directly or loaded from a YAML file:

    permanent_sections:
      - Morning
      - Work
    day_migration_settings:
      links: true
      notes: false
      items:
        sections_with_no_active_items: true
        notes: true
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from sqlalchemy.orm import Session

from daybook.core.exceptions import ValidationError
from daybook.core.logging_manager import DaybookLogger
from daybook.core.validators import DataValidator
from daybook.database.configs.migration_options import MigrationSettings
from daybook.database.decorators import DatabaseOperation, handle_db_errors
from daybook.database.models import User
from .base_manager import BaseManager


class UserManager(BaseManager):
    """Lookup, creation and settings of users."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        super().__init__(session, logger)

    def get(self, email: str) -> Optional[User]:
        normalized = DataValidator.normalize_string(email)
        if not normalized:
            return None
        return self.session.query(User).filter_by(email=normalized.lower()).first()

    @handle_db_errors
    def get_or_create(self, email: str, name: Optional[str] = None) -> User:
        """User with this e-mail, created when missing."""
        normalized = DataValidator.normalize_string(email)
        if not normalized:
            raise ValidationError("User e-mail is required")
        user, _ = self._get_or_create(
            User,
            {"email": normalized.lower()},
            {"name": DataValidator.normalize_string(name), "settings": {}},
        )
        return user

    @handle_db_errors
    def update_settings(
        self,
        user: User,
        permanent_sections: Optional[List[str]] = None,
        day_migration_settings: Optional[Dict[str, Any]] = None,
    ) -> User:
        """
        Replace a user's permanent sections and/or migration settings.

        Migration settings are validated (and normalized) before saving.

        Raises:
            ValidationError: If a value has the wrong shape
        """
        with DatabaseOperation(self.logger, "update_settings", details={"user_id": user.id}):
            if permanent_sections is not None:
                if not isinstance(permanent_sections, list):
                    raise ValidationError("permanent_sections must be a list of titles")
                user.permanent_sections = [
                    title
                    for title in (DataValidator.normalize_string(t) for t in permanent_sections)
                    if title
                ]
            if day_migration_settings is not None:
                if not isinstance(day_migration_settings, dict):
                    raise ValidationError("day_migration_settings must be a mapping")
                user.day_migration_settings = MigrationSettings.from_dict(
                    day_migration_settings
                ).to_dict()
            self.session.flush()
        return user

    def load_settings(self, user: User, path: Union[str, Path]) -> User:
        """
        Load settings from a YAML file and store them on the user.

        Raises:
            ValidationError: If the file is missing or not a YAML mapping
        """
        path = Path(path)
        if not path.is_file():
            raise ValidationError(f"Settings file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Settings file must contain a mapping: {path}")

        return self.update_settings(
            user,
            permanent_sections=data.get("permanent_sections"),
            day_migration_settings=data.get("day_migration_settings"),
        )
