"""
Tests for the convert and prerequisites workers, run on the calling thread.
"""

from vitomu.core.models import ConversionResult, ConvertState
from vitomu.workers.convert_worker import ConvertWorker
from vitomu.workers.dependency_worker import PrerequisitesWorker

from conftest import VALID_URL, FakeConverter, FakeDownloader


class ExplodingConverter(FakeConverter):
    def convert(self, *args, **kwargs):
        raise ValueError("boom")


class TestConvertWorker:
    def test_summary_carries_result(self, qtbot, make_service):
        expected = ConversionResult(is_conversion_successful=True, converted_file_path="/music/Song.mp3")
        worker = ConvertWorker(make_service(FakeConverter(expected)), VALID_URL)
        summaries = []
        worker.finishedSummary.connect(summaries.append)

        with qtbot.waitSignal(worker.finished, timeout=1000):
            worker.run()

        assert summaries == [expected]

    def test_unexpected_error_ends_in_failed_state(self, qtbot, make_service):
        service = make_service(ExplodingConverter(None))
        worker = ConvertWorker(service, VALID_URL)
        states = []
        summaries = []
        errors = []
        service.convertStateChanged.connect(states.append)
        worker.finishedSummary.connect(summaries.append)
        worker.errorRaised.connect(lambda scope, message: errors.append(message))

        worker.run()

        assert states[-1] == ConvertState.FAILED.value
        assert errors == ["boom"]
        assert not summaries[0].is_conversion_successful

    def test_stop_cancels_service(self, make_service):
        service = make_service()
        worker = ConvertWorker(service, VALID_URL)

        worker.stop()

        assert worker.stop_event.is_set()
        assert service._cancel_token.is_set()


class TestPrerequisitesWorker:
    def test_reports_availability(self, make_service, checkers):
        ffmpeg_checker, youtube_dl_checker = checkers
        ffmpeg_checker.in_system_path = True
        youtube_dl_checker.in_system_path = True
        worker = PrerequisitesWorker(make_service())
        summaries = []
        worker.finishedSummary.connect(summaries.append)

        worker.run()

        assert summaries == [True]

    def test_downloads_ffmpeg_when_asked(self, make_service, checkers, tmp_path):
        ffmpeg_checker, youtube_dl_checker = checkers
        youtube_dl_checker.in_system_path = True
        downloader = FakeDownloader(ffmpeg_checker, binary_path=str(tmp_path / "ffmpeg"))
        worker = PrerequisitesWorker(make_service(ffmpeg_downloader=downloader), download_ffmpeg=True)
        summaries = []
        worker.finishedSummary.connect(summaries.append)

        worker.run()

        assert len(downloader.calls) == 1
        assert summaries == [True]

    def test_missing_ffmpeg_is_reported(self, make_service, checkers):
        _, youtube_dl_checker = checkers
        youtube_dl_checker.in_system_path = True
        worker = PrerequisitesWorker(make_service())
        summaries = []
        worker.finishedSummary.connect(summaries.append)

        worker.run()

        assert summaries == [False]
