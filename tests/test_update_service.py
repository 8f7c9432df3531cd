"""
Tests for release version parsing and the update check.
"""

import threading

import pytest

from vitomu.core import update_service as update_module
from vitomu.core.update_service import (
    UpdateService,
    is_newer_version,
    normalize_version,
    parse_release_tag,
    parse_semver,
)


class TestVersions:
    def test_normalize_strips_prefix(self):
        assert normalize_version(" v3.1.0 ") == "3.1.0"
        assert normalize_version("") == ""

    def test_parse_semver(self):
        assert parse_semver("3.1.0") == (3, 1, 0)
        assert parse_semver("release-10.2.33-beta") == (10, 2, 33)
        assert parse_semver("3.1") is None

    @pytest.mark.parametrize(
        ("latest", "current", "expected"),
        [
            ("3.2.0", "3.1.0", True),
            ("v3.1.10", "3.1.9", True),
            ("3.1.0", "3.1.0", False),
            ("3.0.9", "3.1.0", False),
            ("garbage", "3.1.0", False),
        ],
    )
    def test_is_newer_version(self, latest, current, expected):
        assert is_newer_version(latest, current) is expected

    def test_parse_release_tag(self):
        assert parse_release_tag("https://github.com/digimezzo/vitomu/releases/tag/v3.2.0") == "3.2.0"
        with pytest.raises(RuntimeError):
            parse_release_tag("https://github.com/digimezzo/vitomu/releases")


class TestUpdateService:
    def test_newer_release_is_reported(self, monkeypatch):
        release_url = "https://github.com/digimezzo/vitomu/releases/tag/v9.0.0"
        monkeypatch.setattr(update_module, "_resolve_latest_release_url", lambda url, stop_event=None: release_url)

        result = UpdateService().check_for_updates("v3.1.0")

        assert result.update_available
        assert result.current_version == "3.1.0"
        assert result.latest_version == "9.0.0"
        assert result.download_url == release_url

    def test_invalid_current_version_counts_as_zero(self, monkeypatch):
        release_url = "https://github.com/digimezzo/vitomu/releases/tag/v0.0.1"
        monkeypatch.setattr(update_module, "_resolve_latest_release_url", lambda url, stop_event=None: release_url)

        result = UpdateService().check_for_updates("dev")

        assert result.current_version == "0.0.0"
        assert result.update_available

    def test_network_errors_are_wrapped(self, monkeypatch):
        def _fail(url, stop_event=None):
            raise OSError("offline")

        monkeypatch.setattr(update_module, "_resolve_latest_release_url", _fail)

        with pytest.raises(RuntimeError, match="offline"):
            UpdateService().check_for_updates("3.1.0")

    def test_stopped_check_is_interrupted(self):
        stop_event = threading.Event()
        stop_event.set()

        with pytest.raises(InterruptedError):
            UpdateService().check_for_updates("3.1.0", stop_event=stop_event)
