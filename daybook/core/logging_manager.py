#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Rotating, per-component logs for the daybook.

Every component (the database layer, the CLI) writes two files in its log
directory:

    <component>.log  - operations, info and debug lines with JSON details
    errors.log       - errors with their context and traceback

Warnings are echoed to the console as well. Code that may run without a
logger goes through safe_logger(), which hands back a NullLogger.

Line formats:
    OPERATION - day_migrated: {"migrated_count": 3}
    ERROR - MigrationError: This day has already been migrated ...
    Context: operation=migrate_day, source_day_id=4
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click


FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _as_json(details: Optional[Dict[str, Any]]) -> str:
    return json.dumps(details or {}, default=str)


class DaybookLogger:
    """
    File logger of one daybook component.

    Attributes:
        log_dir: Directory holding the component log and errors.log
        component_name: Prefix of the logger names and of the main log file
        main_logger: Operations, info, debug and warnings
        error_logger: Errors only
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "daybook",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        """
        Open (or append to) the component's log files.

        Args:
            log_dir: Directory for the log files (created if missing)
            component_name: 'database', 'cli', ...
            max_bytes: Size at which a file is rotated (default: 10MB)
            backup_count: Rotated files kept per log
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._fresh_logger("operations", logging.DEBUG)
        self.main_logger.addHandler(
            self._rotating_handler(self.log_dir / f"{component_name}.log", logging.DEBUG)
        )
        console = logging.StreamHandler()
        console.setLevel(logging.WARNING)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        self.main_logger.addHandler(console)

        self.error_logger = self._fresh_logger("errors", logging.ERROR)
        self.error_logger.addHandler(
            self._rotating_handler(self.log_dir / "errors.log", logging.ERROR)
        )

    def _fresh_logger(self, channel: str, level: int) -> logging.Logger:
        # Loggers are process-wide; a new instance replaces the old handlers
        logger = logging.getLogger(f"{self.component_name}.{channel}")
        logger.setLevel(level)
        logger.handlers = []
        return logger

    def _rotating_handler(self, path: Path, level: int) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            path,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        return handler

    def close(self) -> None:
        """Flush and release the log files."""
        for logger in (self.main_logger, self.error_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    # ---- Writing ----
    def _emit(
        self, level: int, tag: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        line = f"{tag} - {message}"
        if details:
            line = f"{line}: {_as_json(details)}"
        self.main_logger.log(level, line, stacklevel=3)

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Record a completed operation (always written with its details)."""
        self.main_logger.info(
            f"OPERATION - {operation}: {_as_json(details)}", stacklevel=2
        )

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, "DEBUG", message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "INFO", message, details)

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.WARNING, "WARNING", message, details)

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Write an error, its context and the current traceback to errors.log.

        Args:
            error: The exception
            context: Where it happened (operation name, ids, dates)
        """
        self.error_logger.error(f"ERROR - {type(error).__name__}: {error}")
        if context:
            self.error_logger.error(
                "Context: " + ", ".join(f"{key}={value}" for key, value in context.items())
            )
        self.error_logger.error(f"Traceback:\n{traceback.format_exc()}")

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log a command failure and build the line shown to the user.

        Returns:
            '❌ <ErrorType>: <message>', followed by the traceback when
            `show_traceback` is set
        """
        self.log_error(error, context or {"source": "cli"})
        message = f"❌ {type(error).__name__}: {error}"
        if show_traceback:
            message = f"{message}\n\n{traceback.format_exc()}"
        return message


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Report a failed command and exit.

    The error is logged through the logger stored in ctx.obj (if any), a
    one-line message is printed to stderr (with the traceback under
    --verbose) and the process exits with `exit_code`.

    Args:
        ctx: Click context; reads ctx.obj['logger'] and ctx.obj['verbose']
        error: The exception raised by the command
        operation: Command name for the log (e.g. 'day_migrate')
        additional_context: Arguments worth logging (dates, item ids)
        exit_code: Process exit status
    """
    obj = ctx.obj or {}
    context = {"operation": operation, **(additional_context or {})}

    message = safe_logger(obj.get("logger")).log_cli_error(
        error, context, show_traceback=obj.get("verbose", False)
    )
    click.echo(message, err=True)
    sys.exit(exit_code)


class NullLogger:
    """Stand-in with the DaybookLogger interface that writes nothing."""

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return f"❌ {type(error).__name__}: {error}"


_null_logger = NullLogger()


def safe_logger(logger: Optional[DaybookLogger]) -> DaybookLogger:
    """
    The given logger, or the shared NullLogger when it is None.

    Usage:
        safe_logger(self.logger).log_info("day_created", {"date": day.date})
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]
