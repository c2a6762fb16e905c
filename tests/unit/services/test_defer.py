"""
Tests for DeferService and UndeferService.
"""
import pytest
from datetime import date

from daybook.database.models import Day, Item, ItemState

TARGET = date(2025, 1, 20)


def titles(descendant_manager, owner, inactive=False):
    collection = descendant_manager.get_for(owner)
    load = descendant_manager.inactive_items if inactive else descendant_manager.active_items
    return [i.title for i in load(collection)]


class TestDefer:

    def test_copies_to_target_day_and_marks_deferred(
        self, deferrer, day_manager, descendant_manager, make_item, user, day
    ):
        task = make_item("Call dentist", parent=day)

        result = deferrer.call(task, TARGET)

        assert result.success, result.error
        assert task.state == ItemState.DEFERRED
        assert task.deferred_to == TARGET
        assert titles(descendant_manager, day, inactive=True) == ["Call dentist"]

        target_day = day_manager.get(user, TARGET)
        assert titles(descendant_manager, target_day) == ["Call dentist"]
        assert result.new_item.source_item_id == task.id
        assert result.new_item.state == ItemState.TODO

    def test_nested_items_counted_and_copied(self, deferrer, item_manager, descendant_manager, make_item, day):
        task = make_item("Move house", parent=day)
        make_item("Pack", parent=task)
        boxes = make_item("Buy boxes", parent=task)
        make_item("Tape", parent=boxes)
        done = make_item("Find movers", parent=task)
        item_manager.set_done(done)

        result = deferrer.call(task, TARGET)

        assert result.nested_items_count == 3
        assert titles(descendant_manager, result.new_item) == ["Pack", "Buy boxes"]

    def test_lands_in_matching_permanent_section(
        self, deferrer, day_manager, item_manager, descendant_manager, user_with_sections, today
    ):
        source_day, _ = day_manager.find_or_create(user_with_sections, today)
        work = item_manager.find_active_section(source_day, "Work")
        task = item_manager.create(user_with_sections, "Quarterly review", parent=work)

        result = deferrer.call(task, TARGET)

        target_day = day_manager.get(user_with_sections, TARGET)
        target_work = item_manager.find_active_section(target_day, "Work")
        assert titles(descendant_manager, target_work) == ["Quarterly review"]
        assert item_manager.parent_of(result.new_item) is target_work

    def test_existing_target_day_gets_missing_sections(
        self, deferrer, day_manager, item_manager, user_manager, user, make_item, day
    ):
        target_day, _ = day_manager.find_or_create(user, TARGET)
        user_manager.update_settings(user, permanent_sections=["Home"])
        task = make_item("Fix tap", parent=day)

        assert deferrer.call(task, TARGET).success
        assert item_manager.find_active_section(target_day, "Home") is not None

    def test_only_todo_items(self, deferrer, item_manager, make_item, day, db_session):
        task = make_item("Done thing", parent=day)
        item_manager.set_done(task)
        days_before = db_session.query(Day).count()

        result = deferrer.call(task, TARGET)

        assert not result.success
        assert "todo" in result.error
        assert db_session.query(Day).count() == days_before

    def test_invalid_date(self, deferrer, make_item, day):
        task = make_item("Task", parent=day)
        result = deferrer.call(task, "soon")
        assert not result.success
        assert task.is_todo

    def test_failure_rolls_back(self, deferrer, make_item, day, db_session, monkeypatch):
        task = make_item("Task", parent=day)
        items_before = db_session.query(Item).count()

        def explode(*args, **kwargs):
            from daybook.core.exceptions import DatabaseError
            raise DatabaseError("copy failed")

        monkeypatch.setattr(deferrer.copier, "copy_tree", explode)
        result = deferrer.call(task, TARGET)

        assert not result.success
        assert db_session.query(Item).count() == items_before
        assert db_session.query(Day).filter_by(date=TARGET).count() == 0


class TestUndefer:

    def test_round_trip(self, deferrer, undeferrer, day_manager, descendant_manager, make_item, user, day, db_session):
        make_item("Before", parent=day)
        task = make_item("Call dentist", parent=day)
        make_item("After", parent=day)
        copy_id = deferrer.call(task, TARGET).new_item.id

        result = undeferrer.call(task)

        assert result.success, result.error
        assert task.state == ItemState.TODO
        assert task.deferred_to is None
        assert task.deferred_at is None
        assert db_session.get(Item, copy_id) is None
        assert titles(descendant_manager, day) == ["Before", "After", "Call dentist"]
        assert titles(descendant_manager, day_manager.get(user, TARGET)) == []

    def test_deletes_copy_whatever_its_state(self, deferrer, undeferrer, item_manager, make_item, day, db_session):
        task = make_item("Task", parent=day)
        copy = deferrer.call(task, TARGET).new_item
        item_manager.set_done(copy)

        assert undeferrer.call(task).success
        assert db_session.get(Item, copy.id) is None

    def test_deletes_copy_subtree(self, deferrer, undeferrer, make_item, day, db_session):
        task = make_item("Project", parent=day)
        make_item("Step", parent=task)
        copy = deferrer.call(task, TARGET).new_item
        items_after_defer = db_session.query(Item).count()

        undeferrer.call(task)

        assert db_session.query(Item).count() == items_after_defer - 2
        assert db_session.get(Item, copy.id) is None

    def test_missing_copy_tolerated(self, deferrer, undeferrer, item_manager, make_item, day):
        task = make_item("Task", parent=day)
        copy = deferrer.call(task, TARGET).new_item
        item_manager.delete_tree(copy)

        assert undeferrer.call(task).success
        assert task.is_todo

    def test_multiple_copies_is_integrity_error(
        self, deferrer, undeferrer, day_manager, make_item, user, day
    ):
        task = make_item("Task", parent=day)
        deferrer.call(task, TARGET)
        make_item("Stray copy", parent=day_manager.get(user, TARGET), source_item=task)

        result = undeferrer.call(task)

        assert not result.success
        assert f"Multiple deferred copies found for item {task.id}" in result.error
        assert task.state == ItemState.DEFERRED

    def test_not_deferred(self, undeferrer, make_item, day):
        task = make_item("Task", parent=day)
        result = undeferrer.call(task)
        assert not result.success
        assert "has not been deferred" in result.error

    def test_section_round_trip(self, deferrer, undeferrer, descendant_manager, make_item, day):
        section = make_item("Chores", parent=day, item_type="section")
        make_item("Dishes", parent=section)

        result = deferrer.call(section, TARGET)
        assert result.success
        assert section.state == ItemState.TODO
        assert section.is_deferred
        assert titles(descendant_manager, day, inactive=True) == ["Chores"]

        assert undeferrer.call(section).success
        assert titles(descendant_manager, day) == ["Chores"]

    def test_copies_on_other_days_are_ignored(
        self, deferrer, undeferrer, migrator, day_manager, descendant_manager, make_item, user, db_session
    ):
        source_day, _ = day_manager.find_or_create(user, date(2025, 1, 14))
        task = make_item("Task", parent=source_day)
        migrated = migrator.call(user, source_day, date(2025, 1, 15))
        assert migrated.success, migrated.error
        carried = descendant_manager.active_items(
            descendant_manager.get_for(migrated.target_day)
        )[0]
        deferred_copy = deferrer.call(task, TARGET).new_item

        result = undeferrer.call(task)

        assert result.success, result.error
        assert task.is_todo
        assert db_session.get(Item, deferred_copy.id) is None
        assert db_session.get(Item, carried.id) is carried
        assert carried.source_item_id == task.id
