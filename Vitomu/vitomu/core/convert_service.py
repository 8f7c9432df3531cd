from __future__ import annotations

import tarfile
import threading
import zipfile
from collections.abc import Callable
from pathlib import Path

import requests
from PySide6.QtCore import QObject, Signal

from .config import AUDIO_BITRATES, AUDIO_FORMATS, DEFAULT_AUDIO_BITRATE, DEFAULT_AUDIO_FORMAT_ID, YOUTUBE_LINKS
from .dependency_checker import DependencyChecker, create_ffmpeg_checker, create_youtube_dl_checker
from .dependency_downloader import (
    DependencyDownloadCancelled,
    FFmpegDownloader,
    YoutubeDlDownloader,
    YoutubeDlUpdater,
)
from .models import AudioFormat, ConversionResult, ConvertState
from .paths import ensure_directory, file_name, music_output_dir
from .settings import Settings
from .video_converter import VideoConverter, create_video_converter

_DOWNLOAD_ERRORS = (
    requests.RequestException,
    OSError,
    zipfile.BadZipFile,
    tarfile.TarError,
    DependencyDownloadCancelled,
)

ConverterFactory = Callable[[str], VideoConverter]


def is_video_url_convertible(video_url: str) -> bool:
    value = str(video_url or "")
    if not value.strip():
        return False
    return any(link in value for link in YOUTUBE_LINKS)


def find_audio_format(format_id: str) -> AudioFormat:
    candidate = str(format_id or "").strip().lower()
    for item in AUDIO_FORMATS:
        if item.id == candidate:
            return item
    return next(item for item in AUDIO_FORMATS if item.id == DEFAULT_AUDIO_FORMAT_ID)


def find_audio_bitrate(bitrate: object) -> int:
    try:
        candidate = int(bitrate)
    except (TypeError, ValueError):
        return DEFAULT_AUDIO_BITRATE
    return candidate if candidate in AUDIO_BITRATES else DEFAULT_AUDIO_BITRATE


class ConvertService(QObject):
    """Owns the conversion settings and drives yt-dlp/FFmpeg.

    All methods block; the app runs them on worker threads and listens to
    the signals below for progress and state.
    """

    convertProgressChanged = Signal(int)
    convertStateChanged = Signal(str)
    logChanged = Signal(str)

    def __init__(
        self,
        settings: Settings,
        *,
        ffmpeg_checker: DependencyChecker | None = None,
        youtube_dl_checker: DependencyChecker | None = None,
        ffmpeg_downloader: FFmpegDownloader | None = None,
        youtube_dl_downloader: YoutubeDlDownloader | None = None,
        youtube_dl_updater: YoutubeDlUpdater | None = None,
        converter_factory: ConverterFactory | None = None,
        output_directory: str | Path | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._ffmpeg_checker = ffmpeg_checker or create_ffmpeg_checker()
        self._youtube_dl_checker = youtube_dl_checker or create_youtube_dl_checker()
        self._ffmpeg_downloader = ffmpeg_downloader or FFmpegDownloader()
        self._youtube_dl_downloader = youtube_dl_downloader or YoutubeDlDownloader()
        self._youtube_dl_updater = youtube_dl_updater or YoutubeDlUpdater(log_cb=self._log)
        self._converter_factory = converter_factory or create_video_converter
        self._output_directory = Path(output_directory) if output_directory else music_output_dir()
        self._cancel_token = threading.Event()
        self._last_converted_file_path = ""
        self._last_converted_file_name = ""
        self._selected_audio_format = find_audio_format(settings.audio_format)
        self._selected_audio_bitrate = find_audio_bitrate(settings.audio_bitrate)

        self.audio_formats: tuple[AudioFormat, ...] = AUDIO_FORMATS
        self.audio_bitrates: tuple[int, ...] = AUDIO_BITRATES

    @property
    def output_directory(self) -> Path:
        return self._output_directory

    @property
    def last_converted_file_path(self) -> str:
        return self._last_converted_file_path

    @property
    def last_converted_file_name(self) -> str:
        return self._last_converted_file_name

    @property
    def selected_audio_format(self) -> AudioFormat:
        return self._selected_audio_format

    @property
    def selected_audio_bitrate(self) -> int:
        return self._selected_audio_bitrate

    def select_audio_format(self, audio_format: AudioFormat) -> None:
        self._settings.set_audio_format(audio_format.id)
        self._selected_audio_format = audio_format

    def select_audio_bitrate(self, audio_bitrate: int) -> None:
        self._settings.set_audio_bitrate(audio_bitrate)
        self._selected_audio_bitrate = int(audio_bitrate)

    def cancel(self) -> None:
        self._cancel_token.set()

    def is_video_url_convertible(self, video_url: str) -> bool:
        return is_video_url_convertible(video_url)

    def is_ffmpeg_available(self) -> bool:
        return self._is_available(self._ffmpeg_checker)

    def is_youtube_dl_available(self) -> bool:
        return self._is_available(self._youtube_dl_checker)

    def download_ffmpeg(self) -> bool:
        if self.is_ffmpeg_available():
            return True
        self._log("Start downloading FFmpeg.")
        try:
            self._ffmpeg_downloader.download(
                self._ffmpeg_checker.downloaded_dependency_folder,
                self._cancel_token,
                log_cb=self._log,
            )
        except _DOWNLOAD_ERRORS as exc:
            self._log(f"Could not download FFmpeg: {exc}")
            return False
        self._log("Finished downloading FFmpeg.")
        return self.is_ffmpeg_available()

    def download_youtube_dl(self) -> bool:
        if self.is_youtube_dl_available():
            return True
        self._log("Start downloading yt-dlp.")
        try:
            self._youtube_dl_downloader.download(
                self._youtube_dl_checker.downloaded_dependency_folder,
                self._cancel_token,
                log_cb=self._log,
            )
        except _DOWNLOAD_ERRORS as exc:
            self._log(f"Could not download yt-dlp: {exc}")
            return False
        self._log("Finished downloading yt-dlp.")
        return self.is_youtube_dl_available()

    def update_youtube_dl(self) -> bool:
        # Only the managed copy is ours to update.
        downloaded_path = self._youtube_dl_checker.get_path_of_downloaded_dependency()
        if not downloaded_path.strip():
            return False
        self._log("Start updating yt-dlp.")
        updated = self._youtube_dl_updater.update_youtube_dl(downloaded_path)
        self._log("Finished updating yt-dlp.")
        return updated

    def check_prerequisites(self) -> bool:
        if self.is_youtube_dl_available():
            self.update_youtube_dl()
        else:
            self.download_youtube_dl()
        return self.is_ffmpeg_available() and self.is_youtube_dl_available()

    def convert(self, video_url: str) -> ConversionResult:
        self.convertProgressChanged.emit(0)
        self.convertStateChanged.emit(ConvertState.CONVERTING.value)
        try:
            ensure_directory(self._output_directory)
        except OSError as exc:
            self._log(f"Could not create output directory {self._output_directory}: {exc}")
            result = ConversionResult(is_conversion_successful=False, error=str(exc))
            self.convertStateChanged.emit(ConvertState.FAILED.value)
            return result

        ffmpeg_path_override = self._path_override(self._ffmpeg_checker)
        youtube_dl_path_override = self._path_override(self._youtube_dl_checker)

        converter = self._converter_factory(video_url)
        self._log(f"Converting {video_url}")
        result = converter.convert(
            video_url,
            self._output_directory,
            self._selected_audio_format,
            self._selected_audio_bitrate,
            ffmpeg_path_override,
            youtube_dl_path_override,
            self._on_conversion_progress,
            log_cb=self._log,
            cancel_token=self._cancel_token,
        )

        if result.is_conversion_successful:
            self._last_converted_file_path = result.converted_file_path
            self._last_converted_file_name = file_name(result.converted_file_path)
            self._log(f"Converted to {result.converted_file_path}")
            self.convertStateChanged.emit(ConvertState.SUCCESSFUL.value)
        else:
            self._log(f"Conversion failed: {result.error}")
            self.convertStateChanged.emit(ConvertState.FAILED.value)
        return result

    def _on_conversion_progress(self, percent: float) -> None:
        self.convertProgressChanged.emit(int(percent))

    @staticmethod
    def _is_available(checker: DependencyChecker) -> bool:
        try:
            return checker.is_dependency_available()
        except OSError:
            return False

    @staticmethod
    def _path_override(checker: DependencyChecker) -> str:
        if checker.is_dependency_in_system_path():
            return ""
        return checker.get_path_of_downloaded_dependency()

    def _log(self, message: str) -> None:
        text = str(message or "").strip()
        if text:
            self.logChanged.emit(text)
