"""Tests for MigrationSettings normalization."""
import pytest

from daybook.core.exceptions import ValidationError
from daybook.database.configs import ItemMigrationSettings, MigrationSettings


class TestDefaults:

    def test_defaults(self):
        settings = MigrationSettings.defaults()
        assert settings.links is True
        assert settings.notes is False
        assert settings.active_item_sections is True
        assert settings.items.sections_with_no_active_items is True
        assert settings.items.notes is True

    def test_none_and_partial_mappings_fill_defaults(self):
        assert MigrationSettings.from_dict(None) == MigrationSettings.defaults()

        settings = MigrationSettings.from_dict({"notes": True})
        assert settings.notes is True
        assert settings.links is True


class TestSectionFlagAliases:

    @pytest.mark.parametrize(
        "key", ["sections_with_no_active_items", "sectionsWithNoActiveItems", "sections"]
    )
    def test_every_alias_sets_canonical_flag(self, key):
        settings = MigrationSettings.from_dict({"items": {key: False}})
        assert settings.items.sections_with_no_active_items is False

    def test_canonical_name_wins_over_alias(self):
        items = ItemMigrationSettings.from_dict(
            {"sections_with_no_active_items": True, "sections": False}
        )
        assert items.sections_with_no_active_items is True


class TestCoercion:

    def test_string_flags(self):
        settings = MigrationSettings.from_dict({"links": "no", "items": {"notes": "off"}})
        assert settings.links is False
        assert settings.items.notes is False

    def test_non_mapping_items_ignored(self):
        settings = MigrationSettings.from_dict({"items": ["bad"]})
        assert settings.items == ItemMigrationSettings()

    def test_invalid_flag_raises(self):
        with pytest.raises(ValidationError):
            MigrationSettings.from_dict({"links": "sometimes"})

    def test_to_dict_uses_canonical_names(self):
        data = MigrationSettings.from_dict({"items": {"sections": False}}).to_dict()
        assert data["items"] == {"sections_with_no_active_items": False, "notes": True}

    def test_for_user_without_settings(self, user):
        assert MigrationSettings.for_user(user) == MigrationSettings.defaults()
        assert MigrationSettings.for_user(None) == MigrationSettings.defaults()
