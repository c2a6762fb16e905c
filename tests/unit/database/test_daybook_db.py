"""
Tests for DaybookDB: schema setup, session scopes and scoped accessors.
"""
import pytest

from daybook.core.exceptions import DatabaseError
from daybook.database.manager import DaybookDB
from daybook.database.managers import DayManager, ItemManager
from daybook.database.models import User
from daybook.services import DayMigrator


class TestInitialization:

    def test_fresh_database_is_stamped(self, test_db):
        history = test_db.get_migration_history()
        assert history["status"] == "up_to_date"
        assert history["current_revision"] == "3f1c9a2e7b10"

    def test_reopening_existing_file(self, test_db, test_db_path, test_alembic_dir):
        with test_db.session_scope():
            test_db.users.get_or_create("carol@example.com")

        with DaybookDB(test_db_path, test_alembic_dir) as reopened:
            with reopened.session_scope():
                assert reopened.users.get("carol@example.com") is not None

    def test_log_dir_creates_system_logs(self, test_db_path, test_alembic_dir, tmp_dir):
        db = DaybookDB(test_db_path, test_alembic_dir, log_dir=tmp_dir / "logs")
        try:
            assert (tmp_dir / "logs" / "system" / "database.log").exists()
        finally:
            db.close()


class TestSessionScope:

    def test_scoped_properties_bound_inside_scope(self, test_db):
        with test_db.session_scope():
            assert isinstance(test_db.days, DayManager)
            assert isinstance(test_db.items, ItemManager)
            assert isinstance(test_db.migrator, DayMigrator)

    @pytest.mark.parametrize("name", ["users", "days", "items", "migrator", "trees"])
    def test_scoped_properties_raise_outside_scope(self, test_db, name):
        with pytest.raises(DatabaseError, match="requires an active session"):
            getattr(test_db, name)

    def test_commits_on_success(self, test_db):
        with test_db.session_scope() as session:
            session.add(User(email="dave@example.com"))

        with test_db.session_scope() as session:
            assert session.query(User).filter_by(email="dave@example.com").count() == 1

    def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with test_db.session_scope() as session:
                session.add(User(email="erin@example.com"))
                session.flush()
                raise RuntimeError("abort")

        with test_db.session_scope() as session:
            assert session.query(User).filter_by(email="erin@example.com").count() == 0

    def test_savepoint_rollback_keeps_outer_work(self, test_db):
        with test_db.session_scope() as session:
            session.add(User(email="frank@example.com"))
            session.flush()
            with pytest.raises(RuntimeError):
                with session.begin_nested():
                    session.add(User(email="grace@example.com"))
                    session.flush()
                    raise RuntimeError("inner")

        with test_db.session_scope() as session:
            emails = {u.email for u in session.query(User).all()}
        assert "frank@example.com" in emails
        assert "grace@example.com" not in emails
