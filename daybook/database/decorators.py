#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators and context managers for database operations.
"""
from __future__ import annotations

from datetime import datetime
from functools import wraps
from types import TracebackType
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from daybook.core.exceptions import DatabaseError
from daybook.core.logging_manager import DaybookLogger, safe_logger


def log_database_operation(operation_name: str):
    """
    Decorator to log database operations with timing and context.

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"
            logger = safe_logger(getattr(self, "logger", None))

            logger.log_debug(
                f"Starting {operation_name}",
                {
                    "operation_id": operation_id,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

            try:
                result = function(self, *args, **kwargs)

                duration = (datetime.now() - start_time).total_seconds()
                logger.log_operation(
                    f"{operation_name}_completed",
                    {
                        "operation_id": operation_id,
                        "duration_seconds": duration,
                        "success": getattr(result, "success", True),
                    },
                )

                return result

            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "operation_id": operation_id,
                        "duration_seconds": duration,
                    },
                )
                raise

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator to handle common database errors.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError(f"Data integrity violation: {e}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database operation failed: {e}") from e

    return wrapper


class DatabaseOperation:
    """
    Context manager combining timing, logging and error conversion.

    On success logs '<name>_completed' with its duration. On failure logs
    the error; SQLAlchemy errors are re-raised as DatabaseError, anything
    else propagates unchanged.

    Usage:
        with DatabaseOperation(self.logger, "close_day"):
            day.close()
            self.session.flush()
    """

    def __init__(
        self,
        logger: Optional[DaybookLogger],
        operation_name: str,
        log_start: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.logger = safe_logger(logger)
        self.operation_name = operation_name
        self.log_start = log_start
        self.details = details or {}
        self.start_time: Optional[datetime] = None

    def __enter__(self) -> "DatabaseOperation":
        self.start_time = datetime.now()
        if self.log_start:
            self.logger.log_debug(f"Starting {self.operation_name}", self.details)
        return self

    def _duration(self) -> float:
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> bool:
        duration = self._duration()

        if exc_value is None:
            self.logger.log_operation(
                f"{self.operation_name}_completed",
                {**self.details, "duration_seconds": duration, "success": True},
            )
            return False

        if not isinstance(exc_value, Exception):
            return False

        self.logger.log_error(
            exc_value,
            {
                **self.details,
                "operation": self.operation_name,
                "duration_seconds": duration,
            },
        )

        if isinstance(exc_value, IntegrityError):
            raise DatabaseError(f"Data integrity violation: {exc_value}") from exc_value
        if isinstance(exc_value, SQLAlchemyError):
            raise DatabaseError(f"Database operation failed: {exc_value}") from exc_value
        return False
