#!/usr/bin/env python3
"""
recurrence.py
-------------------
Recurring items: next-date calculation and scheduling.

Rules are JSON objects stored on the item, e.g.:

    {"frequency": "daily"}
    {"frequency": "every_weekday"}
    {"frequency": "every_n_days", "interval": 3}
    {"frequency": "weekly", "days_of_week": [1, 3]}    # 0 = Sunday
    {"frequency": "monthly"}
    {"frequency": "yearly"}

Completing a recurring item creates its next occurrence on the day given
by the rule, under the same permanent section when the item had one.
Reopening the item deletes that occurrence again (see ItemManager.set_todo).
"""
from __future__ import annotations

import calendar
import copy
import json
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.core.exceptions import DatabaseError, ValidationError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.core.validators import DataValidator
from daybook.database.decorators import log_database_operation
from daybook.database.managers.day_manager import DayManager
from daybook.database.managers.item_manager import ItemManager
from daybook.database.models import Item, ItemState, User
from .sections import PermanentSectionReconciler


# ----- Calculator -----
class RecurrenceCalculator:
    """
    Pure next-date calculation for recurrence rules.

    Unknown frequencies, malformed rules (including unparsable JSON text)
    and missing rules give None: the item does not recur.
    """

    FREQUENCIES = (
        "daily",
        "every_weekday",
        "every_n_days",
        "weekly",
        "monthly",
        "yearly",
    )

    @staticmethod
    def parse_rule(rule: Any) -> Optional[Dict[str, Any]]:
        """Rule as a dict, or None if it cannot be read."""
        if rule is None:
            return None
        if isinstance(rule, dict):
            return rule
        if isinstance(rule, str):
            try:
                parsed = json.loads(rule)
            except json.JSONDecodeError:
                return None
            return parsed if isinstance(parsed, dict) else None
        return None

    @classmethod
    def calculate(cls, rule: Any, from_date: Any) -> Optional[date]:
        """
        Next occurrence strictly after `from_date`.

        Args:
            rule: Rule dict or JSON text
            from_date: date or datetime (time of day is ignored)

        Returns:
            The next date, or None when the rule gives no occurrence
            (including one beyond the last representable date)
        """
        parsed = cls.parse_rule(rule)
        if parsed is None:
            return None
        if isinstance(from_date, datetime):
            from_date = from_date.date()

        frequency = parsed.get("frequency")
        if frequency not in cls.FREQUENCIES:
            return None
        try:
            return getattr(cls, f"_{frequency}")(parsed, from_date)
        except (OverflowError, ValueError):
            # Past date.max
            return None

    @staticmethod
    def _daily(rule: Dict[str, Any], from_date: date) -> date:
        return from_date + timedelta(days=1)

    @staticmethod
    def _every_weekday(rule: Dict[str, Any], from_date: date) -> date:
        next_date = from_date + timedelta(days=1)
        while next_date.weekday() >= 5:
            next_date += timedelta(days=1)
        return next_date

    @staticmethod
    def _every_n_days(rule: Dict[str, Any], from_date: date) -> Optional[date]:
        interval = DataValidator.normalize_int(rule.get("interval"))
        if interval is None or interval <= 0:
            return None
        return from_date + timedelta(days=interval)

    @staticmethod
    def _weekly(rule: Dict[str, Any], from_date: date) -> Optional[date]:
        days = rule.get("days_of_week")
        if not isinstance(days, list):
            return None
        valid: List[int] = []
        for value in days:
            day = DataValidator.normalize_int(value)
            if day is not None and 0 <= day <= 6:
                valid.append(day)
        if not valid:
            return None

        for offset in range(1, 8):
            candidate = from_date + timedelta(days=offset)
            # date.weekday() counts from Monday; rules count from Sunday
            if (candidate.weekday() + 1) % 7 in valid:
                return candidate
        return None

    @staticmethod
    def _monthly(rule: Dict[str, Any], from_date: date) -> date:
        year, month = (
            (from_date.year + 1, 1) if from_date.month == 12 else (from_date.year, from_date.month + 1)
        )
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, min(from_date.day, last_day))

    @staticmethod
    def _yearly(rule: Dict[str, Any], from_date: date) -> date:
        year = from_date.year + 1
        last_day = calendar.monthrange(year, from_date.month)[1]
        return date(year, from_date.month, min(from_date.day, last_day))


# ----- Scheduler -----
@dataclass
class ScheduleResult:
    """Outcome of RecurrenceScheduler.call."""

    success: bool
    new_item: Optional[Item] = None
    error: Optional[str] = None


class RecurrenceScheduler:
    """Creates the next occurrence of a completed recurring item."""

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger
        self.days = DayManager(session, logger)
        self.items = ItemManager(session, logger)
        self.sections = PermanentSectionReconciler(session, logger)

    @log_database_operation("schedule_next_occurrence")
    def call(
        self,
        item: Item,
        today: Optional[date] = None,
        user: Optional[User] = None,
    ) -> ScheduleResult:
        """
        Schedule the occurrence following `item`.

        Args:
            item: Item with a recurrence rule (normally just completed)
            today: Date the next occurrence is computed from (defaults to today)
            user: Owner (defaults to the item's owner)

        Returns:
            ScheduleResult with the new 'todo' item, linked from
            `item.recurring_next_item`
        """
        if not item.has_recurrence:
            return ScheduleResult(success=False, error="Item does not have a recurrence rule")

        next_date = RecurrenceCalculator.calculate(item.recurrence_rule, today or date.today())
        if next_date is None:
            return ScheduleResult(
                success=False, error="Failed to calculate next occurrence date"
            )

        user = user or item.user
        try:
            with self.session.begin_nested():
                day, _ = self.days.find_or_create(user, next_date)
                reconciled = self.sections.call(user, day)
                if not reconciled.success:
                    raise DatabaseError(reconciled.error)

                placement = self.items.placement_for_day(user, day, item)
                new_item = self.items.create(
                    user,
                    item.title,
                    item_type=item.item_type,
                    state=ItemState.TODO,
                    extra_data=copy.deepcopy(item.extra_data or {}),
                    recurrence_rule=item.recurrence_rule,
                )
                self.items.place(new_item, placement)
                item.recurring_next_item = new_item
                self.session.flush()
        except (DatabaseError, ValidationError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "schedule_next_occurrence", "item_id": item.id}
            )
            return ScheduleResult(success=False, error=str(e))

        safe_logger(self.logger).log_info(
            "next_occurrence_scheduled",
            {"item_id": item.id, "new_item_id": new_item.id, "date": next_date.isoformat()},
        )
        return ScheduleResult(success=True, new_item=new_item)
