#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Daybook project.

This module defines a hierarchy of exceptions used throughout the project
to handle specific error conditions in different subsystems.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Base for all database-related errors
    │   ├── MigrationError - Day migration refused (already migrated, etc.)
    │   └── DataIntegrityError - Stored data breaks a structural invariant
    └── ValidationError - Data validation failures
        └── StateTransitionError - Item/day not in a state allowing the change

Usage:
    from daybook.core.exceptions import DatabaseError, ValidationError

    try:
        db.items.set_done(item)
    except StateTransitionError as e:
        logger.log_warning(f"Cannot complete: {e}")
    except DatabaseError as e:
        logger.log_error(e)

Services (copy, migration, defer, recurrence) raise these internally to roll
back their savepoint and report them as failure results; they never escape a
service call.
"""


class DatabaseError(Exception):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Data integrity violation: duplicate day")
    """

    pass


class MigrationError(DatabaseError):
    """
    Exception for refused day migrations.

    Raised when a source day cannot be migrated:
    - The day has already been migrated to another day
    - The source day has no ordered collection to read from

    Examples:
        >>> raise MigrationError("This day has already been migrated to 2025-01-16")
    """

    pass


class DataIntegrityError(DatabaseError):
    """
    Exception for stored data that violates a structural invariant.

    Raised when the store holds a state the core never produces itself,
    e.g. more than one deferred copy pointing back at the same item.
    Reported to the caller, never silently repaired.

    Examples:
        >>> raise DataIntegrityError("Multiple deferred copies found for item 12")
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Invalid date formats
    - Missing required fields
    - Type mismatches
    - Malformed references or settings

    Examples:
        >>> raise ValidationError("Invalid date format: expected YYYY-MM-DD")
        >>> raise ValidationError("Required field 'title' missing or empty")
    """

    pass


class StateTransitionError(ValidationError):
    """
    Exception for transitions not allowed from the current state.

    Raised for:
    - Deferring an item that is not in 'todo'
    - Undeferring an item that was never deferred
    - Completing a section or trackable

    Examples:
        >>> raise StateTransitionError("Only items in 'todo' state can be deferred")
    """

    pass
