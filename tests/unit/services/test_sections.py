"""
Tests for PermanentSectionReconciler.
"""
from datetime import date


def root_sections(descendant_manager, day):
    collection = descendant_manager.get_for(day)
    return [i for i in descendant_manager.active_items(collection) if i.is_section]


class TestPermanentSectionReconciler:

    def test_adds_configured_sections_in_order(
        self, reconciler, day_manager, descendant_manager, user_with_sections
    ):
        day, _ = day_manager.find_or_create(user_with_sections, date(2025, 2, 1), ensure_sections=False)

        result = reconciler.call(user_with_sections, day)

        assert result.success
        assert result.sections_added == 2
        sections = root_sections(descendant_manager, day)
        assert [s.title for s in sections] == ["Morning", "Work"]
        assert all(s.is_permanent_section for s in sections)
        assert all(descendant_manager.get_for(s) is not None for s in sections)

    def test_idempotent(self, reconciler, day_manager, descendant_manager, user_with_sections):
        day, _ = day_manager.find_or_create(user_with_sections, date(2025, 2, 1))

        result = reconciler.call(user_with_sections, day)

        assert result.success
        assert result.sections_added == 0
        assert len(root_sections(descendant_manager, day)) == 2

    def test_matches_existing_sections_case_insensitively(
        self, reconciler, day_manager, item_manager, descendant_manager, user_with_sections
    ):
        day, _ = day_manager.find_or_create(user_with_sections, date(2025, 2, 1), ensure_sections=False)
        existing = item_manager.create_section(user_with_sections, "WORK", day)

        result = reconciler.call(user_with_sections, day)

        assert result.sections_added == 1
        titles = [s.title for s in root_sections(descendant_manager, day)]
        assert titles == ["WORK", "Morning"]
        assert not existing.is_permanent_section

    def test_configured_titles_differing_in_case(
        self, reconciler, user_manager, day_manager, descendant_manager, user
    ):
        user_manager.update_settings(user, permanent_sections=["Work", "work"])
        day, _ = day_manager.find_or_create(user, date(2025, 2, 1), ensure_sections=False)

        result = reconciler.call(user, day)

        assert result.sections_added == 1
        assert [s.title for s in root_sections(descendant_manager, day)] == ["Work"]

    def test_inactive_section_does_not_count(
        self, reconciler, day_manager, item_manager, descendant_manager, user_with_sections
    ):
        day, _ = day_manager.find_or_create(user_with_sections, date(2025, 2, 1), ensure_sections=False)
        old = item_manager.create_section(user_with_sections, "Morning", day)
        item_manager.set_deferred(old, date(2025, 2, 2))

        result = reconciler.call(user_with_sections, day)

        assert result.sections_added == 2

    def test_no_configuration(self, reconciler, day, user):
        result = reconciler.call(user, day)
        assert result.success
        assert result.sections_added == 0
