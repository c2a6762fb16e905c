#!/usr/bin/env python3
"""
Daybook Database Package
---------------------------
Persistence layer of the Daybook system.

This package provides:
- models: SQLAlchemy ORM models (days, items, ordered collections, ...)
- managers: Per-entity managers bound to a session
- configs: Declarative option sets (day migration settings)
- decorators: Logging and error-conversion helpers
- manager: DaybookDB, the engine/session/schema entry point

DaybookDB is imported from its module so that services can use the
managers without loading the whole database facade:

    from daybook.database.manager import DaybookDB
"""
from daybook.core.exceptions import (
    DatabaseError,
    DataIntegrityError,
    MigrationError,
    StateTransitionError,
    ValidationError,
)
from .decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)

__version__ = "1.0.0"

__all__ = [
    # Exceptions
    "DatabaseError",
    "DataIntegrityError",
    "MigrationError",
    "StateTransitionError",
    "ValidationError",
    # Decorators
    "DatabaseOperation",
    "handle_db_errors",
    "log_database_operation",
]
