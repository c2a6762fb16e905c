#!/usr/bin/env python3
"""
sections.py
-------------------
Permanent section reconciliation.

A user configures an ordered list of section titles ("Morning", "Work",
...) that every day should start with. The reconciler adds the missing
ones to a day's root collection:

    - matching is case-insensitive against active sections on the day root
    - existing sections are never modified or reordered
    - new sections are appended in configured order, flagged
      `permanent_section`, each with its own empty collection
    - running it twice adds nothing the second time
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.core.exceptions import DatabaseError, ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.database.decorators import log_database_operation
from daybook.database.managers.item_manager import ItemManager
from daybook.database.models import Day, User


@dataclass
class SectionsResult:
    """Outcome of PermanentSectionReconciler.call."""

    success: bool
    sections_added: int = 0
    error: Optional[str] = None


class PermanentSectionReconciler:
    """Ensures a day holds every configured permanent section."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.items = ItemManager(session, logger)

    @log_database_operation("add_permanent_sections")
    def call(self, user: User, day: Day) -> SectionsResult:
        """
        Add the user's missing permanent sections to a day.

        Args:
            user: Owner of the day and of the settings
            day: Target day

        Returns:
            SectionsResult; on failure nothing is created
        """
        titles = user.permanent_sections
        if not titles:
            return SectionsResult(success=True)

        added = 0
        try:
            with self.session.begin_nested():
                for title in titles:
                    if self.items.find_active_section(day, title) is not None:
                        continue
                    self.items.create_section(user, title, day, permanent=True)
                    added += 1
                self.session.flush()
        except (DatabaseError, ValidationError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "add_permanent_sections", "day_id": day.id}
            )
            return SectionsResult(success=False, error=str(e))

        if added:
            safe_logger(self.logger).log_info(
                "permanent_sections_added", {"day_id": day.id, "count": added}
            )
        return SectionsResult(success=True, sections_added=added)
