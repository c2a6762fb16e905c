"""
Tests for DayMigrator.

The source day belongs to a user configured with the permanent sections
"Morning" and "Work".
"""
import pytest
from datetime import date

from daybook.database.configs import MigrationSettings
from daybook.database.models import Day, Item, List, Note

SOURCE_DATE = date(2025, 1, 14)
TARGET_DATE = date(2025, 1, 15)


def titles(descendant_manager, owner):
    return [i.title for i in descendant_manager.active_items(descendant_manager.get_for(owner))]


@pytest.fixture
def owner(user_with_sections):
    return user_with_sections


@pytest.fixture
def source_day(day_manager, item_manager, owner):
    """
    Source day:
        Morning   (permanent) -> Stretch (todo)
        Work      (permanent) -> Report (todo), Invoice (done)
        Errand A  (todo)
        Errand B  (done)
        Project   (section)   -> Design (todo)
        Errand C  (todo)
    """
    day, _ = day_manager.find_or_create(owner, SOURCE_DATE)
    morning = item_manager.find_active_section(day, "Morning")
    work = item_manager.find_active_section(day, "Work")

    item_manager.create(owner, "Stretch", parent=morning)
    item_manager.create(owner, "Report", parent=work)
    invoice = item_manager.create(owner, "Invoice", parent=work)
    item_manager.set_done(invoice)

    item_manager.create(owner, "Errand A", parent=day)
    errand_b = item_manager.create(owner, "Errand B", parent=day)
    item_manager.set_done(errand_b)
    project = item_manager.create(owner, "Project", item_type="section", parent=day)
    item_manager.create(owner, "Design", parent=project)
    item_manager.create(owner, "Errand C", parent=day)

    day_manager.close_day(day)
    return day


class TestMigration:

    def test_copies_pending_work_in_order(self, migrator, descendant_manager, owner, source_day):
        result = migrator.call(owner, source_day, TARGET_DATE)

        assert result.success, result.error
        assert result.migrated_count == 3
        target = result.target_day
        assert target.date == TARGET_DATE
        assert titles(descendant_manager, target) == [
            "Morning",
            "Work",
            "Errand A",
            "Project",
            "Errand C",
        ]

    def test_permanent_sections_merged_not_duplicated(
        self, migrator, item_manager, descendant_manager, owner, source_day, db_session
    ):
        target = migrator.call(owner, source_day, TARGET_DATE).target_day

        work = item_manager.find_active_section(target, "Work")
        assert titles(descendant_manager, work) == ["Report"]
        morning = item_manager.find_active_section(target, "Morning")
        assert titles(descendant_manager, morning) == ["Stretch"]

        work_sections = [
            i for i in descendant_manager.active_items(descendant_manager.get_for(target))
            if i.title == "Work"
        ]
        assert len(work_sections) == 1

    def test_links_days(self, migrator, owner, source_day):
        target = migrator.call(owner, source_day, TARGET_DATE).target_day

        assert source_day.imported_to_day is target
        assert target.imported_from_day is source_day
        assert source_day.imported_at is not None
        assert target.imported_at == source_day.imported_at
        assert target.import_chain_from() == [source_day]

    def test_source_left_untouched(self, migrator, descendant_manager, owner, source_day):
        before = titles(descendant_manager, source_day)
        migrator.call(owner, source_day, TARGET_DATE)
        assert titles(descendant_manager, source_day) == before
        assert source_day.is_closed

    def test_copies_point_at_sources(self, migrator, item_manager, descendant_manager, owner, source_day):
        target = migrator.call(owner, source_day, TARGET_DATE).target_day
        errand = [
            i for i in descendant_manager.active_items(descendant_manager.get_for(target))
            if i.title == "Errand A"
        ][0]
        assert errand.source_item.title == "Errand A"
        assert item_manager.parent_of(errand.source_item) is source_day


class TestSingleUse:

    def test_second_migration_rejected(self, migrator, owner, source_day, db_session):
        assert migrator.call(owner, source_day, TARGET_DATE).success
        days_before = db_session.query(Day).count()

        result = migrator.call(owner, source_day, date(2025, 1, 16))

        assert not result.success
        assert "already been migrated to 2025-01-15" in result.error
        assert db_session.query(Day).count() == days_before

    def test_target_imported_from_another_day(self, migrator, day_manager, owner, source_day):
        other, _ = day_manager.find_or_create(owner, date(2025, 1, 10))
        assert migrator.call(owner, other, TARGET_DATE).success

        result = migrator.call(owner, source_day, TARGET_DATE)
        assert not result.success
        assert "already been imported" in result.error
        assert source_day.imported_to_day_id is None

    def test_cannot_migrate_onto_itself(self, migrator, owner, source_day):
        result = migrator.call(owner, source_day, SOURCE_DATE)
        assert not result.success
        assert "onto itself" in result.error


class TestSettings:

    def test_root_sections_skipped_when_disabled(self, migrator, descendant_manager, owner, source_day):
        settings = MigrationSettings(active_item_sections=False)
        result = migrator.call(owner, source_day, TARGET_DATE, settings=settings)

        assert result.migrated_count == 2
        assert "Project" not in titles(descendant_manager, result.target_day)
        assert "Work" in titles(descendant_manager, result.target_day)

    def test_existing_target_keeps_single_sections(
        self, migrator, day_manager, item_manager, descendant_manager, owner, source_day
    ):
        existing, _ = day_manager.find_or_create(owner, TARGET_DATE)
        item_manager.create(owner, "Already there", parent=existing)

        result = migrator.call(owner, source_day, TARGET_DATE)

        assert result.target_day.id == existing.id
        root = titles(descendant_manager, existing)
        assert root.count("Morning") == 1
        assert root.count("Work") == 1
        assert root[:3] == ["Morning", "Work", "Already there"]

    def test_merges_into_differently_cased_section(
        self, migrator, day_manager, item_manager, descendant_manager, owner, source_day
    ):
        existing, _ = day_manager.find_or_create(owner, TARGET_DATE, ensure_sections=False)
        work = item_manager.create_section(owner, "WORK", existing)

        migrator.call(owner, source_day, TARGET_DATE)

        assert titles(descendant_manager, work) == ["Report"]
        assert "Work" not in titles(descendant_manager, existing)

    @pytest.fixture
    def linked(self, db_session, descendant_manager, owner, source_day):
        shopping = List(user_id=owner.id, title="Shopping", slug="shopping")
        note = Note(user_id=owner.id, content="Call the plumber")
        db_session.add_all([shopping, note])
        db_session.flush()
        collection = descendant_manager.get_for(source_day)
        collection.add_active(shopping.reference)
        collection.add_active(note.reference)
        db_session.flush()
        return shopping, note

    def test_links_and_notes_reattached(self, migrator, descendant_manager, owner, source_day, linked):
        shopping, note = linked
        settings = MigrationSettings(links=True, notes=True)
        result = migrator.call(owner, source_day, TARGET_DATE, settings=settings)

        target_collection = descendant_manager.get_for(result.target_day)
        assert target_collection.contains_active(shopping.reference)
        assert target_collection.contains_active(note.reference)
        assert result.migrated_count == 3

    def test_links_and_notes_left_behind(self, migrator, descendant_manager, owner, source_day, linked):
        shopping, note = linked
        settings = MigrationSettings(links=False, notes=False)
        result = migrator.call(owner, source_day, TARGET_DATE, settings=settings)

        target_collection = descendant_manager.get_for(result.target_day)
        assert not target_collection.contains(shopping.reference)
        assert not target_collection.contains(note.reference)

    def test_user_settings_used_by_default(self, migrator, user_manager, descendant_manager, owner, source_day):
        user_manager.update_settings(owner, day_migration_settings={"active_item_sections": False})
        result = migrator.call(owner, source_day, TARGET_DATE)
        assert "Project" not in titles(descendant_manager, result.target_day)

    def test_section_removed_from_settings_migrates_as_plain_section(
        self, migrator, day_manager, item_manager, user_manager, descendant_manager, user
    ):
        user_manager.update_settings(user, permanent_sections=["Errands"])
        day, _ = day_manager.find_or_create(user, SOURCE_DATE)
        errands = item_manager.find_active_section(day, "Errands")
        item_manager.create(user, "Buy milk", parent=errands)
        user_manager.update_settings(user, permanent_sections=["Work"])

        result = migrator.call(user, day, TARGET_DATE)

        assert result.success, result.error
        assert result.migrated_count == 1
        roots = descendant_manager.active_items(descendant_manager.get_for(result.target_day))
        assert [(i.title, i.is_permanent_section) for i in roots] == [
            ("Work", True),
            ("Errands", False),
        ]
        assert titles(descendant_manager, roots[1]) == ["Buy milk"]


class TestFailure:

    def test_nothing_written_on_error(self, migrator, owner, source_day, db_session, monkeypatch):
        items_before = db_session.query(Item).count()

        def explode(*args, **kwargs):
            from daybook.core.exceptions import DatabaseError
            raise DatabaseError("disk full")

        monkeypatch.setattr(migrator.copier, "copy_tree", explode)
        result = migrator.call(owner, source_day, TARGET_DATE)

        assert not result.success
        assert "disk full" in result.error
        assert db_session.query(Item).count() == items_before
        assert source_day.imported_to_day_id is None
