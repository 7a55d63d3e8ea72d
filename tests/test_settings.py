"""Tests for the three-scope settings manager."""

import logging

import pytest

from reversal_rooms.settings import SettingsManager


@pytest.fixture
def settings(tmp_path):
    root = tmp_path / "game"
    root.mkdir()
    return SettingsManager(root=root, user_dir=tmp_path / "home")


def test_defaults_without_files(settings):
    assert settings.get_merged_settings() == {}
    assert settings.get_modules_dir() == "Modules"
    assert settings.get_saves_dir() == "Saves"
    assert settings.get_log_level() is None
    assert settings.get_log_path() is None


def test_set_value_writes_project_scope(settings):
    written = settings.set_value("paths.modules", "Mods")

    assert written == settings.project_settings_file
    assert "modules: Mods" in written.read_text()
    assert settings.get_modules_dir() == "Mods"


def test_scopes_merge_in_order(settings):
    settings.set_value("logging.level", "warning", scope="user")
    settings.set_value("logging.path", "user.jsonl", scope="user")
    settings.set_value("logging.level", "info", scope="project")
    settings.set_value("logging.level", "debug", scope="local")

    assert settings.get_log_level() == "DEBUG"
    assert settings.get_log_path() == "user.jsonl"
    assert settings.user_settings_file.exists()
    assert settings.local_settings_file.exists()


def test_set_value_keeps_sibling_keys(settings):
    settings.set_value("paths.modules", "Mods")
    settings.set_value("paths.saves", "SaveGames")

    assert settings.get("paths") == {"modules": "Mods", "saves": "SaveGames"}


def test_get_missing_key_returns_default(settings):
    settings.set_value("paths.modules", "Mods")

    assert settings.get("paths.modules.deeper", "fallback") == "fallback"
    assert settings.get("nothing") is None


def test_empty_file_is_empty_settings(settings):
    settings.project_settings_file.write_text("")
    assert settings.get_merged_settings() == {}


def test_invalid_files_are_ignored(settings, caplog):
    caplog.set_level(logging.WARNING)
    settings.project_settings_file.write_text("paths: [unclosed\n")
    settings.local_settings_file.write_text("- just\n- a list\n")

    assert settings.get_merged_settings() == {}
    assert "Failed to read settings" in caplog.text
    assert "expected a mapping" in caplog.text


class TestDeepMerge:
    def test_replaces_regular_values(self, settings):
        result = settings._deep_merge({"key": "base", "number": 1}, {"key": "overlay", "number": 2})
        assert result == {"key": "overlay", "number": 2}

    def test_merges_dicts_recursively(self, settings):
        result = settings._deep_merge({"paths": {"modules": "A", "saves": "B"}}, {"paths": {"saves": "C"}})
        assert result == {"paths": {"modules": "A", "saves": "C"}}

    def test_does_not_mutate_base(self, settings):
        base = {"paths": {"modules": "A"}}
        settings._deep_merge(base, {"logging": {"level": "INFO"}})
        assert base == {"paths": {"modules": "A"}}
