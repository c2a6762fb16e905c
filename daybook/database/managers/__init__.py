#!/usr/bin/env python3
"""
managers package
--------------------
Entity managers for the Daybook database.

Each manager handles lookups and persistence for one entity type and
inherits from BaseManager.

Available Managers:
    BaseManager: Abstract base class with common utilities
    DescendantManager: Ordered collections and reference lookups
    DayManager: Day lifecycle and import queries
    ItemManager: Item creation, state machine and tree operations
    UserManager: Users and their settings

Usage:
    from daybook.database.managers import DayManager, ItemManager

    days = DayManager(session, logger)
    items = ItemManager(session, logger)
"""
from .base_manager import BaseManager
from .descendant_manager import DescendantManager, UniqueTitlesResult
from .day_manager import DayManager, ImportConditions, OpenDayResult
from .item_manager import ItemManager
from .user_manager import UserManager

__all__ = [
    "BaseManager",
    "DescendantManager",
    "UniqueTitlesResult",
    "DayManager",
    "ImportConditions",
    "OpenDayResult",
    "ItemManager",
    "UserManager",
]
