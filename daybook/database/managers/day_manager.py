#!/usr/bin/env python3
"""
day_manager.py
--------------------
Manager for Day entities.

Handles finding, opening, closing and reopening a user's days, and the
queries used before a day migration (latest importable day, previous day,
import-condition validation).

Key Features:
    - find_or_create(): target-day resolution; a new day gets a collection
      and its permanent sections
    - open_day(): open a new day or reopen a closed one (sections untouched)
    - close_day(): archive a day
    - import chain helpers and import-condition validation
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from daybook.core.exceptions import DatabaseError, ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.core.validators import DataValidator
from daybook.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)
from daybook.database.models import Day, DayState, User
from .base_manager import BaseManager
from .descendant_manager import DescendantManager


@dataclass
class OpenDayResult:
    """Outcome of DayManager.open_day."""

    success: bool
    day: Optional[Day] = None
    created: bool = False
    reopened: bool = False
    error: Optional[str] = None


@dataclass
class ImportConditions:
    """Outcome of DayManager.validate_import_conditions."""

    valid: bool
    error_message: Optional[str] = None


class DayManager(BaseManager):
    """
    Manages Day lookups and lifecycle for one session.

    Days are unique per (user, date). Every day owns a collection; a day
    created here also receives the user's permanent sections.
    """

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        super().__init__(session, logger)
        self.descendants = DescendantManager(session, logger)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, user: User, day_date: Any) -> Optional[Day]:
        """
        Day of a user on a date.

        Args:
            user: Owning user
            day_date: date, datetime or ISO string

        Returns:
            Day or None
        """
        normalized = DataValidator.normalize_date(day_date)
        if normalized is None:
            raise ValidationError(f"Invalid day date: {day_date!r}")
        return (
            self.session.query(Day)
            .filter_by(user_id=user.id, date=normalized)
            .first()
        )

    def get_by_id(self, day_id: int) -> Optional[Day]:
        return self._get_by_id(Day, day_id)

    def list_days(self, user: User) -> List[Day]:
        """All days of a user, oldest first."""
        return self._get_all(Day, order_by="date", user_id=user.id)

    @handle_db_errors
    @log_database_operation("find_or_create_day")
    def find_or_create(
        self, user: User, day_date: Any, ensure_sections: bool = True
    ) -> Tuple[Day, bool]:
        """
        Find a user's day, creating it (open) when missing.

        A newly created day gets an empty collection and, when
        `ensure_sections` is set, the user's permanent sections. An
        existing day is returned untouched.

        Args:
            user: Owning user
            day_date: Date of the day
            ensure_sections: Run the permanent-section reconciler on creation

        Returns:
            Tuple of (day, created)

        Raises:
            DatabaseError: If the permanent sections cannot be created
        """
        normalized = DataValidator.normalize_date(day_date)
        if normalized is None:
            raise ValidationError(f"Invalid day date: {day_date!r}")

        with self.session.begin_nested():
            day, created = self._get_or_create(
                Day,
                {"user_id": user.id, "date": normalized},
                {"state": DayState.OPEN},
            )
            if not created:
                return day, False

            self.descendants.ensure_for(day)

            if ensure_sections:
                from daybook.services.sections import PermanentSectionReconciler

                result = PermanentSectionReconciler(self.session, self.logger).call(
                    user, day
                )
                if not result.success:
                    raise DatabaseError(
                        f"Could not add permanent sections to {normalized}: {result.error}"
                    )

        safe_logger(self.logger).log_info(
            "day_created", {"user_id": user.id, "date": normalized}
        )
        return day, True

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open_day(self, user: User, day_date: Any) -> OpenDayResult:
        """
        Open a day for editing.

        - Missing day: created with its collection and permanent sections.
        - Closed day: reopened; sections are not added again.
        - Open day: returned as is.

        Returns:
            OpenDayResult (success False with error on failure)
        """
        try:
            with self.session.begin_nested():
                day = self.get(user, day_date)
                if day is None:
                    day, _ = self.find_or_create(user, day_date)
                    return OpenDayResult(success=True, day=day, created=True)

                if day.is_closed:
                    with DatabaseOperation(self.logger, "reopen_day"):
                        day.reopen()
                        self.session.flush()
                    return OpenDayResult(success=True, day=day, reopened=True)

                return OpenDayResult(success=True, day=day)
        except (DatabaseError, ValidationError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "open_day", "date": day_date}
            )
            return OpenDayResult(success=False, error=str(e))

    @handle_db_errors
    def close_day(self, day: Day) -> Day:
        """Close a day (idempotent; restamps closed_at)."""
        with DatabaseOperation(self.logger, "close_day", details={"day_id": day.id}):
            day.close()
            self.session.flush()
        return day

    @handle_db_errors
    def reopen_day(self, day: Day) -> Day:
        """Reopen a closed day."""
        with DatabaseOperation(self.logger, "reopen_day", details={"day_id": day.id}):
            day.reopen()
            self.session.flush()
        return day

    # -------------------------------------------------------------------------
    # Import chain
    # -------------------------------------------------------------------------

    def import_chain_from(self, day: Day) -> List[Day]:
        """Days a day was migrated from, nearest first."""
        return day.import_chain_from()

    def import_chain_to(self, day: Day) -> List[Day]:
        """Days a day was migrated into, nearest first."""
        return day.import_chain_to()

    def find_latest_importable(self, user: User, before: Any) -> Optional[Day]:
        """Most recent closed, not yet migrated day strictly before a date."""
        before_date = DataValidator.normalize_date(before)
        return (
            self.session.query(Day)
            .filter(
                Day.user_id == user.id,
                Day.state == DayState.CLOSED,
                Day.imported_to_day_id.is_(None),
                Day.date < before_date,
            )
            .order_by(Day.date.desc())
            .first()
        )

    def find_previous(self, user: User, before: Any) -> Optional[Day]:
        """Most recent not yet migrated day strictly before a date, in any state."""
        before_date = DataValidator.normalize_date(before)
        return (
            self.session.query(Day)
            .filter(
                Day.user_id == user.id,
                Day.imported_to_day_id.is_(None),
                Day.date < before_date,
            )
            .order_by(Day.date.desc())
            .first()
        )

    def validate_import_conditions(
        self,
        user: User,
        source: Optional[Day],
        target_date: Any,
        today: Optional[date] = None,
    ) -> ImportConditions:
        """
        Check that `source` may be migrated into `target_date`.

        Args:
            user: Owning user
            source: Candidate source day (None when nothing was found)
            target_date: Date the migration would create or fill
            today: Reference date for the no-future rule (defaults to today)

        Returns:
            ImportConditions with the first failing rule's message
        """
        target = DataValidator.normalize_date(target_date)
        today = today or date.today()

        if source is None:
            return ImportConditions(False, "No closed day available to import from")
        if not source.is_closed:
            return ImportConditions(False, "Source day must be closed before importing")
        if target is None or not source.date < target:
            return ImportConditions(
                False, "Cannot import from a day that is not before the target date"
            )
        if target > today:
            return ImportConditions(False, "Cannot import to a future date")

        target_day = self.get(user, target)
        if target_day is not None and target_day.imported_from_day_id is not None:
            return ImportConditions(
                False, "Target day has already been imported from another day"
            )
        return ImportConditions(True)
