#!/usr/bin/env python3
"""
Database configuration modules.

This package contains declarative configurations for database operations:
- migration_options: Options controlling what a day migration carries forward
"""
from .migration_options import (
    ITEM_OPTIONS,
    MIGRATION_OPTIONS,
    ItemMigrationSettings,
    MigrationSettings,
)

__all__ = [
    "ITEM_OPTIONS",
    "MIGRATION_OPTIONS",
    "ItemMigrationSettings",
    "MigrationSettings",
]
