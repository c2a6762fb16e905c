#!/usr/bin/env python3
"""
base_manager.py
--------------------
Shared plumbing for the entity managers (users, days, items, collections).

A manager wraps one Session and an optional DaybookLogger. The helpers
here cover what every manager ends up needing:

    _get_by_id / _get_all    plain lookups
    _resolve_object          accept either an instance or its id
    _get_or_create           unique-row creation inside a SAVEPOINT
    _execute_with_retry      retry a flush while SQLite reports a lock

Managers never commit; the caller's session_scope() does.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union

# --- Third party imports ---
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

# --- Local imports ---
from daybook.core.exceptions import DatabaseError
from daybook.core.logging_manager import DaybookLogger, safe_logger

M = TypeVar("M")

_LOCK_MARKERS = ("locked", "busy")


class BaseManager(ABC):
    """
    Base class of the daybook managers.

    Attributes:
        session: Session all reads and writes go through
        logger: Optional DaybookLogger
    """

    def __init__(self, session: Session, logger: Optional[DaybookLogger] = None):
        self.session = session
        self.logger = logger

    # ---- Lookups ----
    def _get_by_id(self, model_class: Type[M], entity_id: Optional[int]) -> Optional[M]:
        if entity_id is None:
            return None
        return self.session.get(model_class, entity_id)

    def _get_all(
        self, model_class: Type[M], order_by: Optional[str] = None, **filters: Any
    ) -> List[M]:
        """Rows of `model_class` matching `filters`, sorted by `order_by` if given."""
        query = self.session.query(model_class).filter_by(**filters)
        if order_by is not None:
            query = query.order_by(getattr(model_class, order_by))
        return query.all()

    def _resolve_object(self, ref: Union[M, int], model_class: Type[M]) -> M:
        """
        Turn an instance or a primary key into a persisted instance.

        Raises:
            ValueError: Unknown id, or an instance that was never flushed
            TypeError: Anything other than an instance or an int
        """
        name = model_class.__name__
        if isinstance(ref, model_class):
            if getattr(ref, "id", None) is None:
                raise ValueError(f"{name} instance must be persisted")
            return ref
        if isinstance(ref, bool) or not isinstance(ref, int):
            raise TypeError(f"Expected {name} instance or int, got {type(ref)}")

        found = self.session.get(model_class, ref)
        if found is None:
            raise ValueError(f"No {name} found with id: {ref}")
        return found

    # ---- Writes ----
    def _get_or_create(
        self,
        model_class: Type[M],
        lookup_fields: Dict[str, Any],
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> Tuple[M, bool]:
        """
        Fetch the row matching `lookup_fields`, inserting it when absent.

        The insert runs in its own SAVEPOINT: if a unique constraint fires
        (the row appeared in the meantime) only the insert is rolled back
        and the existing row is returned.

        Args:
            model_class: Model to query
            lookup_fields: Columns identifying the row
            extra_fields: Columns set only on insert

        Returns:
            (row, created)
        """
        query = self.session.query(model_class).filter_by(**lookup_fields)
        existing = query.first()
        if existing is not None:
            return existing, False

        try:
            with self.session.begin_nested():
                row = model_class(**lookup_fields, **(extra_fields or {}))
                self.session.add(row)
                self.session.flush()
        except IntegrityError as e:
            existing = query.first()
            if existing is None:
                raise DatabaseError(
                    f"Could not create {model_class.__name__} {lookup_fields}"
                ) from e
            return existing, False
        return row, True

    def _execute_with_retry(
        self, operation: Callable[[], Any], max_retries: int = 3, retry_delay: float = 0.1
    ) -> Any:
        """
        Run `operation`, retrying with exponential backoff while the
        database file is locked by another connection.
        """
        attempt = 0
        while True:
            try:
                return operation()
            except OperationalError as e:
                locked = any(marker in str(e).lower() for marker in _LOCK_MARKERS)
                attempt += 1
                if not locked or attempt >= max_retries:
                    raise
                wait = retry_delay * 2 ** (attempt - 1)
                safe_logger(self.logger).log_debug(
                    f"Database locked, retrying in {wait}s",
                    {"attempt": attempt, "max_retries": max_retries},
                )
                time.sleep(wait)
