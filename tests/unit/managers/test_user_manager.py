"""
Tests for UserManager and YAML settings loading.
"""
import pytest

from daybook.core.exceptions import ValidationError


class TestUsers:

    def test_get_or_create_normalizes_email(self, user_manager):
        created = user_manager.get_or_create("  Alice@Example.com ", "Alice")
        again = user_manager.get_or_create("alice@example.com")
        assert created.id == again.id
        assert created.email == "alice@example.com"
        assert user_manager.get("ALICE@example.com") is created

    def test_blank_email_rejected(self, user_manager):
        with pytest.raises(ValidationError):
            user_manager.get_or_create("   ")
        assert user_manager.get("") is None


class TestSettings:

    def test_update_permanent_sections_drops_blanks(self, user_manager, user):
        user_manager.update_settings(user, permanent_sections=["Morning", " ", "Work "])
        assert user.permanent_sections == ["Morning", "Work"]

    def test_update_migration_settings_normalized(self, user_manager, user):
        user_manager.update_settings(
            user, day_migration_settings={"links": "no", "items": {"sections": False}}
        )
        stored = user.day_migration_settings
        assert stored["links"] is False
        assert stored["items"]["sections_with_no_active_items"] is False
        assert stored["notes"] is False

    def test_wrong_shapes_rejected(self, user_manager, user):
        with pytest.raises(ValidationError):
            user_manager.update_settings(user, permanent_sections="Morning")
        with pytest.raises(ValidationError):
            user_manager.update_settings(user, day_migration_settings=["links"])

    def test_load_settings_from_yaml(self, user_manager, user, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "permanent_sections:\n"
            "  - Morning\n"
            "  - Work\n"
            "day_migration_settings:\n"
            "  notes: true\n"
            "  items:\n"
            "    sectionsWithNoActiveItems: false\n",
            encoding="utf-8",
        )

        user_manager.load_settings(user, path)

        assert user.permanent_sections == ["Morning", "Work"]
        assert user.day_migration_settings["notes"] is True
        assert user.day_migration_settings["items"]["sections_with_no_active_items"] is False

    def test_load_settings_keeps_unspecified_keys(self, user_manager, user, tmp_path):
        user_manager.update_settings(user, permanent_sections=["Morning"])
        path = tmp_path / "settings.yaml"
        path.write_text("day_migration_settings:\n  links: false\n", encoding="utf-8")

        user_manager.load_settings(user, path)
        assert user.permanent_sections == ["Morning"]

    def test_load_settings_errors(self, user_manager, user, tmp_path):
        with pytest.raises(ValidationError, match="not found"):
            user_manager.load_settings(user, tmp_path / "missing.yaml")

        bad = tmp_path / "bad.yaml"
        bad.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="mapping"):
            user_manager.load_settings(user, bad)

        broken = tmp_path / "broken.yaml"
        broken.write_text("key: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValidationError, match="Invalid YAML"):
            user_manager.load_settings(user, broken)
