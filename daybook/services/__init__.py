#!/usr/bin/env python3
"""
Daybook Services Package
---------------------------
Multi-step operations on days and items.

Each service is bound to a session, runs its work in one SAVEPOINT and
reports the outcome as a result dataclass (`success`, `error`, plus
operation fields) instead of raising.

Services:
    - PermanentSectionReconciler: add configured sections to a day
    - SubtreeCopier: copy an item and its pending subtree
    - DayMigrator: carry a day's pending work to another date
    - DeferService / UndeferService: defer an item and revert it
    - RecurrenceCalculator / RecurrenceScheduler: recurring items
    - ItemTree: nested read-only snapshots
"""
from .sections import PermanentSectionReconciler, SectionsResult
from .copier import CopyResult, SubtreeCopier
from .migration import DayMigrator, MigrationResult
from .defer import DeferResult, DeferService, UndeferResult, UndeferService
from .recurrence import RecurrenceCalculator, RecurrenceScheduler, ScheduleResult
from .tree import CYCLE_LABEL, ItemTree, TreeNode

__all__ = [
    "PermanentSectionReconciler",
    "SectionsResult",
    "CopyResult",
    "SubtreeCopier",
    "DayMigrator",
    "MigrationResult",
    "DeferResult",
    "DeferService",
    "UndeferResult",
    "UndeferService",
    "RecurrenceCalculator",
    "RecurrenceScheduler",
    "ScheduleResult",
    "CYCLE_LABEL",
    "ItemTree",
    "TreeNode",
]
