"""
Tests for SubtreeCopier: state filtering, section handling and provenance.
"""
import pytest

from daybook.database.configs import ItemMigrationSettings
from daybook.database.models import Item, ItemState, Note, User


def titles(descendant_manager, owner, inactive=False):
    collection = descendant_manager.get_for(owner)
    if inactive:
        return [i.title for i in descendant_manager.inactive_items(collection)]
    return [i.title for i in descendant_manager.active_items(collection)]


@pytest.fixture
def target(day_manager, descendant_manager, user):
    target_day, _ = day_manager.find_or_create(user, "2025-01-16")
    return target_day


class TestCopy:

    def test_clones_attributes_and_provenance(self, copier, make_item, descendant_manager, day, target):
        source = make_item(
            "Plan",
            parent=day,
            extra_data={"tags": ["work"], "nested": {"a": 1}},
            recurrence_rule={"frequency": "weekly", "days_of_week": [1]},
        )

        result = copier.call(source, descendant_manager.get_for(target))

        assert result.success
        clone = result.new_item
        assert clone.id != source.id
        assert clone.title == "Plan"
        assert clone.source_item_id == source.id
        assert clone.extra_data == source.extra_data
        assert clone.recurrence_rule == source.recurrence_rule
        assert titles(descendant_manager, target) == ["Plan"]

    def test_extra_data_is_deep_copied(self, copier, make_item, descendant_manager, day, target):
        source = make_item("Plan", parent=day, extra_data={"nested": {"a": 1}})
        clone = copier.call(source, descendant_manager.get_for(target)).new_item

        clone.extra_data["nested"]["a"] = 2
        assert source.extra_data["nested"]["a"] == 1

    def test_only_todo_children_copied(self, copier, item_manager, make_item, descendant_manager, day, target):
        parent = make_item("Project", parent=day)
        make_item("Open", parent=parent)
        done = make_item("Finished", parent=parent)
        dropped = make_item("Abandoned", parent=parent)
        item_manager.set_done(done)
        item_manager.set_dropped(dropped)

        clone = copier.call(parent, descendant_manager.get_for(target)).new_item

        assert titles(descendant_manager, clone) == ["Open"]
        assert titles(descendant_manager, clone, inactive=True) == []

    def test_preserves_order_depth_first(self, copier, make_item, descendant_manager, day, target):
        parent = make_item("Project", parent=day, item_type="section")
        first = make_item("One", parent=parent)
        make_item("One.a", parent=first)
        make_item("Two", parent=parent)

        clone = copier.call(parent, descendant_manager.get_for(target)).new_item

        assert titles(descendant_manager, clone) == ["One", "Two"]
        copied_first = descendant_manager.active_items(descendant_manager.get_for(clone))[0]
        assert titles(descendant_manager, copied_first) == ["One.a"]

    def test_non_todo_root_lands_inactive(self, copier, item_manager, make_item, descendant_manager, day, target):
        source = make_item("Done already", parent=day)
        item_manager.set_done(source)

        clone = copier.call(source, descendant_manager.get_for(target)).new_item

        assert clone.state == ItemState.DONE
        assert titles(descendant_manager, target, inactive=True) == ["Done already"]

    def test_nested_permanent_sections_not_copied(self, copier, item_manager, make_item, user, descendant_manager, day, target):
        parent = make_item("Project", parent=day, item_type="section")
        item_manager.create_section(user, "Work", parent, permanent=True)
        make_item("Task", parent=parent)

        clone = copier.call(parent, descendant_manager.get_for(target)).new_item
        assert titles(descendant_manager, clone) == ["Task"]

    def test_clone_drops_permanent_flag(self, copier, item_manager, user, descendant_manager, day, target):
        work = item_manager.create_section(user, "Work", day, permanent=True)
        clone = copier.call(work, descendant_manager.get_for(target)).new_item
        assert clone.is_section
        assert not clone.is_permanent_section


class TestSectionsWithNoActiveItems:

    @pytest.fixture
    def project(self, item_manager, make_item, day):
        """A section with a done task, a sub-section without pending work and a todo."""
        project = make_item("Project", parent=day, item_type="section")
        done = make_item("Shipped", parent=project)
        item_manager.set_done(done)
        sub = make_item("Backlog", parent=project, item_type="section")
        make_item("Someday", parent=sub, item_type="section")
        make_item("Live", parent=project)
        return project

    def test_flag_on_copies_empty_sections(self, copier, descendant_manager, project, target):
        settings = ItemMigrationSettings(sections_with_no_active_items=True)
        clone = copier.call(project, descendant_manager.get_for(target), settings=settings).new_item

        assert titles(descendant_manager, clone) == ["Backlog", "Live"]
        backlog = descendant_manager.active_items(descendant_manager.get_for(clone))[0]
        assert descendant_manager.get_for(backlog) is not None
        assert titles(descendant_manager, backlog) == []

    def test_flag_off_skips_sections_without_pending_work(self, copier, descendant_manager, project, target):
        settings = ItemMigrationSettings(sections_with_no_active_items=False)
        clone = copier.call(project, descendant_manager.get_for(target), settings=settings).new_item

        assert titles(descendant_manager, clone) == ["Live"]

    def test_header_only_sections_always_copied(self, copier, item_manager, make_item, descendant_manager, day, target):
        project = make_item("Project", parent=day, item_type="section")
        header = make_item("Header", parent=project, item_type="section")
        old = make_item("Old", parent=header)
        item_manager.set_done(old)
        make_item("Live", parent=project)

        settings = ItemMigrationSettings(sections_with_no_active_items=False)
        clone = copier.call(project, descendant_manager.get_for(target), settings=settings).new_item

        assert titles(descendant_manager, clone) == ["Header", "Live"]

    def test_pending_work_in_nested_section_counts(self, copier, make_item, descendant_manager, day, target):
        outer = make_item("Outer", parent=day, item_type="section")
        inner = make_item("Inner", parent=outer, item_type="section")
        make_item("Deep task", parent=inner)

        settings = ItemMigrationSettings(sections_with_no_active_items=False)
        clone = copier.call(outer, descendant_manager.get_for(target), settings=settings).new_item

        assert titles(descendant_manager, clone) == ["Inner"]

    def test_root_section_without_pending_work(self, copier, item_manager, make_item, descendant_manager, day, target):
        section = make_item("Quiet", parent=day, item_type="section")
        task = make_item("Done", parent=section)
        item_manager.set_done(task)

        settings = ItemMigrationSettings(sections_with_no_active_items=False)
        clone = copier.call(section, descendant_manager.get_for(target), settings=settings).new_item

        assert clone.title == "Quiet"
        assert titles(descendant_manager, clone) == []


class TestNotes:

    @pytest.fixture
    def with_note(self, make_item, descendant_manager, day, user, db_session):
        parent = make_item("Project", parent=day)
        make_item("Task", parent=parent)
        note = Note(user_id=user.id, content="context")
        db_session.add(note)
        db_session.flush()
        descendant_manager.get_for(parent).add_active(note.reference)
        return parent, note

    def test_notes_linked_when_enabled(self, copier, descendant_manager, with_note, target):
        parent, note = with_note
        clone = copier.call(
            parent, descendant_manager.get_for(target), settings=ItemMigrationSettings(notes=True)
        ).new_item
        assert descendant_manager.get_for(clone).contains_active(note.reference)

    def test_notes_left_behind_when_disabled(self, copier, descendant_manager, with_note, target):
        parent, note = with_note
        clone = copier.call(
            parent, descendant_manager.get_for(target), settings=ItemMigrationSettings(notes=False)
        ).new_item
        assert not descendant_manager.get_for(clone).contains_active(note.reference)


class TestFailure:

    def test_invalid_user_writes_nothing(self, copier, make_item, descendant_manager, day, target, db_session):
        source = make_item("Project", parent=day)
        make_item("Task", parent=source)
        before = db_session.query(Item).count()

        result = copier.call(source, descendant_manager.get_for(target), user=User(id=999999, email="ghost@example.com"))

        assert not result.success
        assert result.error
        assert db_session.query(Item).count() == before
        assert titles(descendant_manager, target) == []
