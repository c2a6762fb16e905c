#!/usr/bin/env python3
"""
cli_utils.py
-------------------
Shared CLI utilities for Daybook commands.

Functions:
    setup_logger: Initialize DaybookLogger for CLI operations

Usage:
    from daybook.core.cli_utils import setup_logger

    logger = setup_logger(log_dir, "cli")
"""
from pathlib import Path

from daybook.core.logging_manager import DaybookLogger


def setup_logger(log_dir: Path, component_name: str) -> DaybookLogger:
    """
    Setup logging for CLI operations.

    Creates the operations log directory if it doesn't exist and initializes
    a DaybookLogger instance for the specified component.

    Args:
        log_dir: Base log directory (typically from paths.LOG_DIR)
        component_name: Component identifier for logging (e.g., 'cli')

    Returns:
        Configured DaybookLogger instance
    """
    operations_log_dir = log_dir / "operations"
    operations_log_dir.mkdir(parents=True, exist_ok=True)
    return DaybookLogger(operations_log_dir, component_name=component_name)
