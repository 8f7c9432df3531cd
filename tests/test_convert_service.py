"""
Tests for ConvertService settings, prerequisite handling and conversion flow.
"""

import pytest
import requests

from vitomu.core.config import AUDIO_FORMATS
from vitomu.core.convert_service import find_audio_bitrate, find_audio_format, is_video_url_convertible
from vitomu.core.models import ConversionResult, ConvertState

from conftest import VALID_URL, FakeConverter, FakeDownloader, FakeUpdater


class TestUrlMatching:
    @pytest.mark.parametrize(
        "url",
        [
            VALID_URL,
            "https://youtu.be/dQw4w9WgXcQ",
            "https://youtube.com/shorts/abcdefghijk",
            "prefix text https://www.youtube.com/watch?v=x&t=10",
        ],
    )
    def test_youtube_links_are_convertible(self, url):
        assert is_video_url_convertible(url)

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "https://vimeo.com/123", "youtube.com", "https://www.youtube.com/channel/abc"],
    )
    def test_other_text_is_not_convertible(self, url):
        assert not is_video_url_convertible(url)

    def test_none_is_not_convertible(self):
        assert not is_video_url_convertible(None)


class TestSelections:
    def test_lookup_falls_back_to_defaults(self):
        assert find_audio_format("FLAC").id == "flac"
        assert find_audio_format("wma").id == "mp3"
        assert find_audio_bitrate("192") == 192
        assert find_audio_bitrate(100) == 320
        assert find_audio_bitrate(None) == 320

    def test_initial_selection_comes_from_settings(self, make_service, settings):
        settings.set_audio_format("opus")
        settings.set_audio_bitrate(128)
        service = make_service()

        assert service.selected_audio_format.id == "opus"
        assert service.selected_audio_bitrate == 128
        assert service.audio_formats == AUDIO_FORMATS

    def test_selecting_format_persists(self, make_service, settings, saved_configs):
        service = make_service()
        ogg = find_audio_format("ogg")

        service.select_audio_format(ogg)

        assert service.selected_audio_format == ogg
        assert settings.audio_format == "ogg"
        assert saved_configs[-1].audio_format == "ogg"

    def test_selecting_bitrate_persists(self, make_service, settings):
        service = make_service()

        service.select_audio_bitrate(64)

        assert service.selected_audio_bitrate == 64
        assert settings.audio_bitrate == 64

    def test_unsupported_bitrate_is_rejected(self, make_service):
        service = make_service()

        with pytest.raises(ValueError):
            service.select_audio_bitrate(100)

        assert service.selected_audio_bitrate == 320


class TestPrerequisites:
    def test_ffmpeg_download_skipped_when_available(self, make_service, checkers):
        ffmpeg_checker, _ = checkers
        ffmpeg_checker.in_system_path = True
        downloader = FakeDownloader(ffmpeg_checker)
        service = make_service(ffmpeg_downloader=downloader)

        assert service.download_ffmpeg() is True
        assert downloader.calls == []

    def test_ffmpeg_download_logs_start_and_finish(self, qtbot, make_service, checkers, tmp_path):
        ffmpeg_checker, _ = checkers
        downloader = FakeDownloader(ffmpeg_checker, binary_path=str(tmp_path / "ffmpeg"))
        service = make_service(ffmpeg_downloader=downloader)
        logs = []
        service.logChanged.connect(logs.append)

        assert service.download_ffmpeg() is True
        assert downloader.calls == [ffmpeg_checker.downloaded_dependency_folder]
        assert logs == ["Start downloading FFmpeg.", "Finished downloading FFmpeg."]

    def test_ffmpeg_download_failure_returns_false(self, make_service, checkers):
        ffmpeg_checker, _ = checkers
        downloader = FakeDownloader(ffmpeg_checker, error=requests.ConnectionError("offline"))
        service = make_service(ffmpeg_downloader=downloader)

        assert service.download_ffmpeg() is False
        assert not service.is_ffmpeg_available()

    def test_check_downloads_missing_youtube_dl(self, make_service, checkers, tmp_path):
        ffmpeg_checker, youtube_dl_checker = checkers
        ffmpeg_checker.in_system_path = True
        downloader = FakeDownloader(youtube_dl_checker, binary_path=str(tmp_path / "yt-dlp"))
        updater = FakeUpdater()
        service = make_service(youtube_dl_downloader=downloader, youtube_dl_updater=updater)

        assert service.check_prerequisites() is True
        assert len(downloader.calls) == 1
        assert updater.calls == []

    def test_check_updates_managed_youtube_dl(self, make_service, checkers, tmp_path):
        ffmpeg_checker, youtube_dl_checker = checkers
        ffmpeg_checker.in_system_path = True
        youtube_dl_checker.downloaded_path = str(tmp_path / "yt-dlp")
        downloader = FakeDownloader(youtube_dl_checker)
        updater = FakeUpdater()
        service = make_service(youtube_dl_downloader=downloader, youtube_dl_updater=updater)

        assert service.check_prerequisites() is True
        assert downloader.calls == []
        assert updater.calls == [str(tmp_path / "yt-dlp")]

    def test_system_youtube_dl_is_not_updated(self, make_service, checkers):
        ffmpeg_checker, youtube_dl_checker = checkers
        ffmpeg_checker.in_system_path = True
        youtube_dl_checker.in_system_path = True
        updater = FakeUpdater()
        service = make_service(youtube_dl_updater=updater)

        assert service.check_prerequisites() is True
        assert updater.calls == []

    def test_check_fails_without_ffmpeg(self, make_service, checkers):
        _, youtube_dl_checker = checkers
        youtube_dl_checker.in_system_path = True
        service = make_service()

        assert service.check_prerequisites() is False


class TestConvert:
    def test_successful_conversion(self, qtbot, make_service, checkers, tmp_path):
        ffmpeg_checker, youtube_dl_checker = checkers
        ffmpeg_checker.downloaded_path = str(tmp_path / "ffmpeg")
        youtube_dl_checker.in_system_path = True
        output_file = tmp_path / "Music" / "Song.mp3"
        converter = FakeConverter(
            ConversionResult(is_conversion_successful=True, converted_file_path=str(output_file)),
            progress=(12.7, 45.0, 100.0),
        )
        service = make_service(converter)
        states = []
        progress = []
        service.convertStateChanged.connect(states.append)
        service.convertProgressChanged.connect(progress.append)

        result = service.convert(VALID_URL)

        assert result.is_conversion_successful
        assert states == [ConvertState.CONVERTING.value, ConvertState.SUCCESSFUL.value]
        assert progress == [0, 12, 45, 100]
        assert service.last_converted_file_path == str(output_file)
        assert service.last_converted_file_name == "Song.mp3"
        assert (tmp_path / "Music").is_dir()

        call = converter.calls[0]
        assert call["video_url"] == VALID_URL
        assert call["output_directory"] == tmp_path / "Music"
        assert call["audio_format"].id == "mp3"
        assert call["audio_bitrate"] == 320
        assert call["ffmpeg_path_override"] == str(tmp_path / "ffmpeg")
        assert call["youtube_dl_path_override"] == ""

    def test_failed_conversion(self, make_service):
        converter = FakeConverter(ConversionResult(is_conversion_successful=False, error="ERROR: Video unavailable"))
        service = make_service(converter)
        states = []
        service.convertStateChanged.connect(states.append)

        result = service.convert(VALID_URL)

        assert not result.is_conversion_successful
        assert result.error == "ERROR: Video unavailable"
        assert states == [ConvertState.CONVERTING.value, ConvertState.FAILED.value]
        assert service.last_converted_file_path == ""

    def test_output_directory_error_fails(self, make_service, tmp_path, monkeypatch):
        converter = FakeConverter(ConversionResult(is_conversion_successful=True))
        service = make_service(converter)
        states = []
        service.convertStateChanged.connect(states.append)

        def _raise(path):
            raise PermissionError("Permission denied")

        monkeypatch.setattr("vitomu.core.convert_service.ensure_directory", _raise)

        result = service.convert(VALID_URL)

        assert not result.is_conversion_successful
        assert "Permission denied" in result.error
        assert states[-1] == ConvertState.FAILED.value
        assert converter.calls == []

    def test_cancel_is_passed_to_converter(self, make_service):
        converter = FakeConverter(ConversionResult(is_conversion_successful=False, error="Conversion cancelled"))
        service = make_service(converter)

        service.cancel()
        service.convert(VALID_URL)

        assert converter.calls[0]["cancel_token"].is_set()
