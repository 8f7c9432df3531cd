from __future__ import annotations

from .base_worker import BaseWorker
from ..core.convert_service import ConvertService
from ..core.models import ConversionResult, ConvertState


class ConvertWorker(BaseWorker):
    job_name = "convert"

    def __init__(self, service: ConvertService, video_url: str) -> None:
        super().__init__()
        self._service = service
        self._video_url = str(video_url or "").strip()

    def stop(self) -> None:
        super().stop()
        self._service.cancel()

    def run(self) -> None:
        def on_error(exc: Exception) -> None:
            # Never leave the state machine in CONVERTING.
            self._service.convertStateChanged.emit(ConvertState.FAILED.value)
            self.finishedSummary.emit(ConversionResult(is_conversion_successful=False, error=str(exc)))

        self.run_guarded(
            execute=lambda: self._service.convert(self._video_url),
            on_result=self.finishedSummary.emit,
            on_error=on_error,
        )
