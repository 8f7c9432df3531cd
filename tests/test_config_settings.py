"""
Tests for config sanitizing, persistence and the Settings wrapper.
"""

import json

import pytest

from vitomu.core import config as config_module
from vitomu.core.config import (
    CONFIG_SCHEMA_VERSION,
    _load_config_from_path,
    _sanitize_payload,
    config_to_dict,
    default_config,
    load_config,
    save_config,
)
from vitomu.core.settings import Settings


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "Vitomu_config.json"
    monkeypatch.setattr(config_module, "config_path", lambda: path)
    return path


class TestSanitize:
    def test_defaults(self):
        config = default_config()

        assert config.schema_version == CONFIG_SCHEMA_VERSION
        assert config.audio_format == "mp3"
        assert config.audio_bitrate == 320
        assert config.theme_mode == "dark"
        assert config.check_for_updates is True

    def test_invalid_values_fall_back(self):
        config = _sanitize_payload(
            {
                "theme_mode": "sepia",
                "audio_format": "wma",
                "audio_bitrate": "loud",
                "use_system_title_bar": "maybe",
                "check_for_updates": None,
            }
        )

        assert config == default_config()

    def test_valid_values_are_coerced(self):
        config = _sanitize_payload(
            {
                "theme_mode": " Light ",
                "audio_format": "FLAC",
                "audio_bitrate": "192",
                "use_system_title_bar": "yes",
                "check_for_updates": "off",
                "window_geometry": "abc",
            }
        )

        assert config.theme_mode == "light"
        assert config.audio_format == "flac"
        assert config.audio_bitrate == 192
        assert config.use_system_title_bar is True
        assert config.check_for_updates is False
        assert config.window_geometry == "abc"


class TestPersistence:
    def test_save_then_load(self, config_file):
        config = default_config()
        config.audio_format = "opus"
        config.audio_bitrate = 128

        assert save_config(config) == str(config_file)
        assert not config_file.with_suffix(".json.tmp").exists()

        loaded = load_config()
        assert loaded.audio_format == "opus"
        assert loaded.audio_bitrate == 128

    def test_saved_payload_shape(self, config_file):
        save_config(default_config())

        payload = json.loads(config_file.read_text(encoding="utf-8"))
        assert payload == config_to_dict(default_config())

    def test_missing_file_loads_defaults(self, config_file):
        assert load_config() == default_config()

    def test_corrupt_file_loads_defaults(self, config_file):
        config_file.write_text("{not json", encoding="utf-8")

        assert _load_config_from_path(config_file) is None
        assert load_config() == default_config()

    def test_non_object_payload_is_ignored(self, config_file):
        config_file.write_text("[1, 2, 3]", encoding="utf-8")

        assert _load_config_from_path(config_file) is None


class TestSettings:
    def test_setters_save_immediately(self, settings, saved_configs):
        settings.set_audio_format("M4A")
        settings.set_audio_bitrate(256)
        settings.set_check_for_updates(False)

        assert settings.audio_format == "m4a"
        assert settings.audio_bitrate == 256
        assert settings.check_for_updates is False
        assert len(saved_configs) == 3
        assert saved_configs[-1].audio_bitrate == 256

    def test_unsupported_values_raise(self, settings, saved_configs):
        with pytest.raises(ValueError):
            settings.set_audio_format("wma")
        with pytest.raises(ValueError):
            settings.set_audio_bitrate(1000)

        assert saved_configs == []
        assert settings.audio_format == "mp3"

    def test_invalid_theme_falls_back_to_dark(self, settings):
        settings.set_theme_mode("light")
        assert settings.theme_mode == "light"

        settings.set_theme_mode("neon")
        assert settings.theme_mode == "dark"

    def test_config_property_is_a_copy(self, settings):
        snapshot = settings.config
        snapshot.audio_format = "wav"

        assert settings.audio_format == "mp3"

    def test_loads_from_disk_by_default(self, config_file):
        config = default_config()
        config.use_system_title_bar = True
        save_config(config)

        assert Settings(save=lambda cfg: None).use_system_title_bar is True

    def test_failed_save_is_reported(self):
        messages = []
        settings = Settings(default_config(), save=lambda cfg: None)
        settings.set_save_failure_handler(messages.append)

        settings.set_theme_mode("light")

        assert settings.theme_mode == "light"
        assert len(messages) == 1
        assert "could not be saved" in messages[0]

    def test_successful_save_is_silent(self, config_file):
        messages = []
        settings = Settings(default_config())
        settings.set_save_failure_handler(messages.append)

        settings.set_check_for_updates(False)

        assert messages == []
        assert json.loads(config_file.read_text(encoding="utf-8"))["check_for_updates"] is False
