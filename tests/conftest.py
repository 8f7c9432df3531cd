"""
Shared fixtures for the Vitomu test suite.
"""

import os
from pathlib import Path

# Set offscreen platform to prevent display errors on headless systems
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QObject, Signal

from vitomu.controller.clipboard_watcher import ClipboardWatcher
from vitomu.controller.convert_flow import ConvertStateMachine
from vitomu.core.config import default_config
from vitomu.core.convert_service import ConvertService, is_video_url_convertible
from vitomu.core.models import ConversionResult
from vitomu.core.settings import Settings

VALID_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class FakeConvertService(QObject):
    """Exposes only the signals and the URL check the state machine uses."""

    convertProgressChanged = Signal(int)
    convertStateChanged = Signal(str)
    logChanged = Signal(str)

    def is_video_url_convertible(self, video_url):
        return is_video_url_convertible(video_url)


class FakeChecker:
    def __init__(self, folder, *, in_system_path=False, downloaded_path=""):
        self.downloaded_dependency_folder = Path(folder)
        self.in_system_path = in_system_path
        self.downloaded_path = downloaded_path

    def is_dependency_in_system_path(self):
        return self.in_system_path

    def get_path_of_downloaded_dependency(self):
        return self.downloaded_path

    def is_dependency_available(self):
        return self.in_system_path or bool(self.downloaded_path)


class FakeDownloader:
    def __init__(self, checker, binary_path="", error=None):
        self.checker = checker
        self.binary_path = binary_path
        self.error = error
        self.calls = []

    def download(self, target_folder, cancel_token=None, *, progress_cb=None, log_cb=None):
        self.calls.append(Path(target_folder))
        if self.error is not None:
            raise self.error
        self.checker.downloaded_path = self.binary_path
        return self.binary_path


class FakeUpdater:
    def __init__(self, result=True):
        self.result = result
        self.calls = []

    def update_youtube_dl(self, path):
        self.calls.append(path)
        return self.result


class FakeConverter:
    def __init__(self, result, progress=()):
        self.result = result
        self.progress = tuple(progress)
        self.calls = []

    def convert(
        self,
        video_url,
        output_directory,
        audio_format,
        audio_bitrate,
        ffmpeg_path_override="",
        youtube_dl_path_override="",
        progress_cb=None,
        *,
        log_cb=None,
        cancel_token=None,
    ):
        self.calls.append(
            {
                "video_url": video_url,
                "output_directory": Path(output_directory),
                "audio_format": audio_format,
                "audio_bitrate": audio_bitrate,
                "ffmpeg_path_override": ffmpeg_path_override,
                "youtube_dl_path_override": youtube_dl_path_override,
                "cancel_token": cancel_token,
            }
        )
        for percent in self.progress:
            if progress_cb:
                progress_cb(percent)
        return self.result


@pytest.fixture
def saved_configs():
    return []


@pytest.fixture
def settings(saved_configs):
    return Settings(default_config(), save=saved_configs.append)


@pytest.fixture
def fake_service(qtbot):
    return FakeConvertService()


@pytest.fixture
def clipboard_watcher(qtbot):
    return ClipboardWatcher()


@pytest.fixture
def state_machine(qtbot, fake_service, clipboard_watcher):
    machine = ConvertStateMachine(fake_service, clipboard_watcher, reset_delay_ms=100)
    machine.start()
    yield machine
    machine.stop()


@pytest.fixture
def checkers(tmp_path):
    return (
        FakeChecker(tmp_path / "Dependencies" / "ffmpeg"),
        FakeChecker(tmp_path / "Dependencies" / "yt-dlp"),
    )


@pytest.fixture
def make_service(qtbot, settings, checkers, tmp_path):
    ffmpeg_checker, youtube_dl_checker = checkers

    def _make(
        converter=None,
        *,
        ffmpeg_downloader=None,
        youtube_dl_downloader=None,
        youtube_dl_updater=None,
    ):
        converter = converter or FakeConverter(ConversionResult(is_conversion_successful=True))
        return ConvertService(
            settings,
            ffmpeg_checker=ffmpeg_checker,
            youtube_dl_checker=youtube_dl_checker,
            ffmpeg_downloader=ffmpeg_downloader or FakeDownloader(ffmpeg_checker),
            youtube_dl_downloader=youtube_dl_downloader or FakeDownloader(youtube_dl_checker),
            youtube_dl_updater=youtube_dl_updater or FakeUpdater(),
            converter_factory=lambda url: converter,
            output_directory=tmp_path / "Music",
        )

    return _make
