"""
conftest.py
-----------
Shared pytest fixtures for Daybook tests.

Provides fixtures for:
- Database setup and teardown (temporary SQLite file through DaybookDB)
- A session with managers and services bound to it
- Users, days and items to build trees from
"""
import pytest
from pathlib import Path
from datetime import date
from tempfile import TemporaryDirectory

from daybook.core.paths import ALEMBIC_DIR


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_db_path(tmp_dir):
    """Create temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_alembic_dir():
    """Path to Alembic directory."""
    return ALEMBIC_DIR


# ----- Database Fixtures -----

@pytest.fixture
def test_db(test_db_path, test_alembic_dir):
    """
    Create test database instance with schema.

    Returns a DaybookDB instance on a fresh file (tables created and
    stamped). Database is torn down after the test.
    """
    from daybook.database.manager import DaybookDB

    db = DaybookDB(db_path=test_db_path, alembic_dir=test_alembic_dir)

    yield db

    # Cleanup
    db.close()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    Provides a session with automatic rollback after test.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


# ----- Manager Fixtures -----

@pytest.fixture
def user_manager(db_session):
    """Create UserManager instance for testing."""
    from daybook.database.managers import UserManager
    return UserManager(db_session)


@pytest.fixture
def day_manager(db_session):
    """Create DayManager instance for testing."""
    from daybook.database.managers import DayManager
    return DayManager(db_session)


@pytest.fixture
def item_manager(db_session):
    """Create ItemManager instance for testing."""
    from daybook.database.managers import ItemManager
    return ItemManager(db_session)


@pytest.fixture
def descendant_manager(db_session):
    """Create DescendantManager instance for testing."""
    from daybook.database.managers import DescendantManager
    return DescendantManager(db_session)


# ----- Service Fixtures -----

@pytest.fixture
def reconciler(db_session):
    from daybook.services import PermanentSectionReconciler
    return PermanentSectionReconciler(db_session)


@pytest.fixture
def copier(db_session):
    from daybook.services import SubtreeCopier
    return SubtreeCopier(db_session)


@pytest.fixture
def migrator(db_session):
    from daybook.services import DayMigrator
    return DayMigrator(db_session)


@pytest.fixture
def deferrer(db_session):
    from daybook.services import DeferService
    return DeferService(db_session)


@pytest.fixture
def undeferrer(db_session):
    from daybook.services import UndeferService
    return UndeferService(db_session)


@pytest.fixture
def scheduler(db_session):
    from daybook.services import RecurrenceScheduler
    return RecurrenceScheduler(db_session)


@pytest.fixture
def item_tree(db_session):
    from daybook.services import ItemTree
    return ItemTree(db_session)


# ----- Data Fixtures -----

@pytest.fixture
def user(user_manager):
    """A user without permanent sections."""
    return user_manager.get_or_create("alice@example.com", "Alice")


@pytest.fixture
def user_with_sections(user_manager):
    """A user configured with two permanent sections."""
    owner = user_manager.get_or_create("bob@example.com", "Bob")
    user_manager.update_settings(owner, permanent_sections=["Morning", "Work"])
    return owner


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def day(day_manager, user, today):
    """An open day of `user` with an empty collection."""
    created, _ = day_manager.find_or_create(user, today)
    return created


@pytest.fixture
def make_item(item_manager, user):
    """
    Factory creating items for `user`.

    Usage:
        task = make_item("Write", parent=day)
        section = make_item("Chores", parent=day, item_type="section")
    """

    def _make(title, parent=None, owner=None, **kwargs):
        return item_manager.create(owner or user, title, parent=parent, **kwargs)

    return _make
