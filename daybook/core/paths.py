#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the Daybook project.

This module defines all project paths as Path objects for consistent path
handling across the codebase. Paths are organized by category and relative
to the project root directory.

The project structure:
    ROOT/
    ├── daybook/       # Application code
    ├── data/          # User data (SQLite database, settings files)
    └── logs/          # Application logs

The root can be relocated with the DAYBOOK_HOME environment variable, which
is how an installed (non-editable) copy finds its data directory.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Uses DAYBOOK_HOME when set; otherwise assumes this file is at
    ROOT/daybook/core/paths.py and navigates up the directory tree.

    Returns:
        Path object for project root
    """
    override = os.environ.get("DAYBOOK_HOME")
    if override:
        return Path(override).expanduser().resolve()

    # Navigate up: paths.py -> core/ -> daybook/ -> ROOT/
    return Path(__file__).resolve().parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
DATA_DIR = ROOT / "data"

# ---- Package ----
PACKAGE_DIR = Path(__file__).resolve().parent.parent

# --- Database ---
ALEMBIC_DIR = PACKAGE_DIR / "migrations"
DB_DIR = DATA_DIR / "db"
DB_PATH = DB_DIR / "daybook.db"

# --- Settings ---
SETTINGS_PATH = DATA_DIR / "settings.yaml"

# ---- Logs ----
LOG_DIR = ROOT / "logs"
