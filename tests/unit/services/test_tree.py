"""
Tests for ItemTree snapshots and their outline rendering.
"""
from daybook.database.models import ChildRef, EntityKind
from daybook.services import CYCLE_LABEL


class TestItemTree:

    def test_nested_snapshot(self, item_tree, descendant_manager, make_item, day):
        section = make_item("Work", parent=day, item_type="section")
        make_item("Report", parent=section)
        make_item("Email", parent=day)

        root = item_tree.build(descendant_manager.get_for(day), root_label="2025-01-15")

        assert root.label == "2025-01-15"
        assert [n.label for n in root.children] == ["Work", "Email"]
        assert [n.label for n in root.children[0].children] == ["Report"]

    def test_active_before_inactive(self, item_tree, item_manager, descendant_manager, make_item, day):
        done = make_item("Finished", parent=day)
        make_item("Open", parent=day)
        item_manager.set_done(done)

        root = item_tree.build(descendant_manager.get_for(day))
        assert [n.label for n in root.children] == ["Open", "Finished"]

    def test_render_marks_state_and_indents(self, item_tree, item_manager, descendant_manager, make_item, day):
        section = make_item("Work", parent=day, item_type="section")
        task = make_item("Report", parent=section)
        dropped = make_item("Fax", parent=day)
        item_manager.set_dropped(dropped)

        lines = item_tree.build(descendant_manager.get_for(day)).render()

        assert lines == [
            f"# Work ({section.id})",
            f"  [ ] Report ({task.id})",
            f"[-] Fax ({dropped.id})",
        ]

    def test_skips_stale_references(self, item_tree, descendant_manager, make_item, day, db_session):
        make_item("Real", parent=day)
        collection = descendant_manager.get_for(day)
        collection.add_active(ChildRef(EntityKind.ITEM, 999999))
        db_session.flush()

        root = item_tree.build(collection)
        assert [n.label for n in root.children] == ["Real"]

    def test_cycle_detected(self, item_tree, descendant_manager, make_item, day, db_session):
        outer = make_item("Outer", parent=day, item_type="section")
        inner = make_item("Inner", parent=outer, item_type="section")
        descendant_manager.get_for(inner).add_active(outer.reference)
        db_session.flush()

        root = item_tree.build(descendant_manager.get_for(day))

        inner_node = root.children[0].children[0]
        assert inner_node.label == "Inner"
        assert [n.label for n in inner_node.children] == [CYCLE_LABEL]
        assert CYCLE_LABEL in "\n".join(root.render())

    def test_empty_collection(self, item_tree):
        root = item_tree.build(None)
        assert root.children == []
        assert root.render() == []
