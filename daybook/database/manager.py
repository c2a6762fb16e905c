#!/usr/bin/env python3
"""
manager.py
--------------------
Entry point to a daybook database file.

DaybookDB owns the SQLite engine, creates or upgrades the schema through
Alembic, and hands out transactional session scopes. Inside a scope the
managers and services are bound to that scope's session:

    Managers:
        - db.users: users and settings
        - db.days: open/close days, import queries
        - db.items: item creation and state machine
        - db.descendants: ordered collections

    Services:
        - db.sections: permanent-section reconciler
        - db.copier: subtree copy
        - db.migrator: day migration
        - db.deferrer / db.undeferrer: defer and undefer
        - db.scheduler: next occurrence of recurring items
        - db.trees: nested read-only snapshots

Notes
==============
- Every multi-step service runs in a SAVEPOINT inside the scope's transaction
- All datetime fields are UTC-aware
- Logs go to <log_dir>/system/database.log and are rotated
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

# --- Third party ---
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from daybook.core.exceptions import DatabaseError
from daybook.core.logging_manager import DaybookLogger, safe_logger
from daybook.services import (
    DayMigrator,
    DeferService,
    ItemTree,
    PermanentSectionReconciler,
    RecurrenceScheduler,
    SubtreeCopier,
    UndeferService,
)
from .decorators import handle_db_errors, log_database_operation
from .managers import DayManager, DescendantManager, ItemManager, UserManager
from .models import Base

MIGRATION_FILE_TEMPLATE = "%%(year)d%%(month).2d%%(day).2d_%%(hour).2d%%(minute).2d_%%(slug)s"

# Everything bound to a session scope takes (session, logger)
SCOPE_FACTORIES = {
    "users": UserManager,
    "days": DayManager,
    "items": ItemManager,
    "descendants": DescendantManager,
    "sections": PermanentSectionReconciler,
    "copier": SubtreeCopier,
    "migrator": DayMigrator,
    "deferrer": DeferService,
    "undeferrer": UndeferService,
    "scheduler": RecurrenceScheduler,
    "trees": ItemTree,
}


def _configure_sqlite(engine: Engine) -> None:
    """
    Make pysqlite honour foreign keys and SAVEPOINT transactions.

    The driver's own transaction handling is disabled and BEGIN is emitted
    by SQLAlchemy so that begin_nested() rolls back correctly.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class _ScopedAccessor:
    """Attribute resolving to the manager/service bound to the open scope."""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, db: Optional["DaybookDB"], owner: type) -> Any:
        if db is None:
            return self
        bound = db._scope.get(self.name)
        if bound is None:
            raise DatabaseError(
                f"'{self.name}' requires an active session. "
                f"Use within session_scope: with db.session_scope() as session: "
                f"db.{self.name}..."
            )
        return bound


class DaybookDB:
    """
    A daybook database file and its session factory.

    Attributes:
        - db_path (Path): SQLite file
        - alembic_dir (Path): Alembic script directory
        - engine (Engine): SQLAlchemy engine
        - SessionLocal (sessionmaker): Session factory
        - alembic_cfg (Config): Programmatic Alembic configuration

    Usage:
        db = DaybookDB("~/daybook/db/daybook.db", ALEMBIC_DIR)
        with db.session_scope() as session:
            user = db.users.get_or_create("me@example.com")
            result = db.days.open_day(user, "2024-03-01")
    """

    users: UserManager = _ScopedAccessor()  # type: ignore[assignment]
    days: DayManager = _ScopedAccessor()  # type: ignore[assignment]
    items: ItemManager = _ScopedAccessor()  # type: ignore[assignment]
    descendants: DescendantManager = _ScopedAccessor()  # type: ignore[assignment]
    sections: PermanentSectionReconciler = _ScopedAccessor()  # type: ignore[assignment]
    copier: SubtreeCopier = _ScopedAccessor()  # type: ignore[assignment]
    migrator: DayMigrator = _ScopedAccessor()  # type: ignore[assignment]
    deferrer: DeferService = _ScopedAccessor()  # type: ignore[assignment]
    undeferrer: UndeferService = _ScopedAccessor()  # type: ignore[assignment]
    scheduler: RecurrenceScheduler = _ScopedAccessor()  # type: ignore[assignment]
    trees: ItemTree = _ScopedAccessor()  # type: ignore[assignment]

    def __init__(
        self,
        db_path: Union[str, Path],
        alembic_dir: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """
        Open the database, creating the file and schema when needed.

        Args:
            db_path: SQLite file
            alembic_dir: Alembic scripts directory
            log_dir: Root log directory; database logs go in its 'system' folder

        Raises:
            DatabaseError: If the engine or schema cannot be set up
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.alembic_dir = Path(alembic_dir).expanduser().resolve()

        self.logger: Optional[DaybookLogger] = None
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve() / "system"
            self.logger = DaybookLogger(self.log_dir, component_name="database")

        self._scope: Dict[str, Any] = {}
        self._open()

    def _open(self) -> None:
        log = safe_logger(self.logger)
        log.log_operation(
            "database_init_start",
            {"db_path": str(self.db_path), "alembic_dir": str(self.alembic_dir)},
        )
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(f"sqlite:///{self.db_path}", pool_pre_ping=True)
            _configure_sqlite(self.engine)
            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine, autoflush=True, expire_on_commit=False
            )

            self.alembic_cfg = Config()
            self.alembic_cfg.set_main_option("script_location", str(self.alembic_dir))
            self.alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")
            self.alembic_cfg.set_main_option("file_template", MIGRATION_FILE_TEMPLATE)

            self.initialize_schema()
        except Exception as e:
            log.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

        log.log_operation("database_init_complete", {"success": True})

    # ---- Sessions ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        One transaction, committed on success and rolled back on error.

        Usage:
            with db.session_scope() as session:
                user = db.users.get_or_create("me@example.com")
                db.migrator.call(user, source_day, date(2024, 3, 2))
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        log = safe_logger(self.logger)

        self._scope = {
            name: factory(session, self.logger) for name, factory in SCOPE_FACTORIES.items()
        }
        log.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            log.log_error(e, {"operation": "session_rollback", "session_id": session_id})
            raise
        finally:
            self._scope = {}
            session.close()
            log.log_debug("session_close", {"session_id": session_id})

    def get_session(self) -> Session:
        """A bare session; the caller commits and closes it."""
        return self.SessionLocal()

    # ---- Schema ----
    def initialize_schema(self) -> None:
        """
        Bring the schema up to date.

        An empty file gets every table from the models and is stamped at the
        Alembic head; a file with tables is upgraded through the migrations.
        """
        log = safe_logger(self.logger)
        existing = inspect(self.engine).get_table_names()

        if existing:
            self.upgrade_database()
            log.log_operation("existing_database_migrated", {"table_count": len(existing)})
            return

        Base.metadata.create_all(bind=self.engine)
        command.stamp(self.alembic_cfg, "head")
        log.log_operation("fresh_database_created", {"tables_created": len(Base.metadata.tables)})

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """Run Alembic migrations up to `revision`."""
        command.upgrade(self.alembic_cfg, revision)

    def get_migration_history(self) -> Dict[str, Optional[str]]:
        """
        Current Alembic revision of the file.

        Returns:
            {'current_revision': ..., 'status': 'up_to_date' | 'needs_migration'},
            or {'error': ...} when the file cannot be read
        """
        try:
            with self.engine.connect() as conn:
                current = MigrationContext.configure(conn).get_current_revision()
        except Exception as e:
            safe_logger(self.logger).log_error(e, {"operation": "get_migration_history"})
            return {"error": str(e)}

        return {
            "current_revision": current,
            "status": "up_to_date" if current else "needs_migration",
        }

    # ---- Lifecycle ----
    def close(self) -> None:
        """Dispose of the engine and release log files."""
        self.engine.dispose()
        if self.logger is not None:
            self.logger.close()

    def __enter__(self) -> "DaybookDB":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
