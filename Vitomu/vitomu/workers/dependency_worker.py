from __future__ import annotations

from .base_worker import BaseWorker
from ..core.convert_service import ConvertService


class PrerequisitesWorker(BaseWorker):
    """Checks (and fetches when missing) the conversion dependencies.

    With ``download_ffmpeg`` set, FFmpeg is downloaded first; this backs the
    "Download FFmpeg" action of the FFmpeg-not-found page. The summary is a
    bool: both FFmpeg and yt-dlp are usable.
    """

    job_name = "prerequisites"

    def __init__(self, service: ConvertService, *, download_ffmpeg: bool = False) -> None:
        super().__init__()
        self._service = service
        self._download_ffmpeg = bool(download_ffmpeg)

    def stop(self) -> None:
        super().stop()
        self._service.cancel()

    def run(self) -> None:
        def execute() -> bool:
            if self._download_ffmpeg and not self._service.download_ffmpeg():
                self.logChanged.emit("FFmpeg could not be installed automatically.")
            return self._service.check_prerequisites()

        self.run_guarded(
            execute=execute,
            on_result=lambda available: self.finishedSummary.emit(bool(available)),
            on_error=lambda exc: self.finishedSummary.emit(False),
        )
