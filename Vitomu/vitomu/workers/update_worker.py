from __future__ import annotations

from .base_worker import BaseWorker
from ..core.models import UpdateCheckResult
from ..core.update_service import UpdateService


class UpdateWorker(BaseWorker):
    """Checks GitHub for a newer release.

    The summary is always an ``UpdateCheckResult``; a failed or stopped
    check carries its reason in ``error``.
    """

    job_name = "update"

    def __init__(self, service: UpdateService, current_version: str) -> None:
        super().__init__()
        self._service = service
        self._current_version = str(current_version or "").strip()

    def _unresolved(self, reason: str) -> UpdateCheckResult:
        return UpdateCheckResult(
            update_available=False,
            current_version=self._current_version,
            error=reason,
        )

    def run(self) -> None:
        def execute() -> UpdateCheckResult:
            self.logChanged.emit("Checking for updates...")
            return self._service.check_for_updates(self._current_version, stop_event=self.stop_event)

        self.run_guarded(
            execute=execute,
            on_result=self.finishedSummary.emit,
            on_error=lambda exc: self.finishedSummary.emit(self._unresolved(str(exc))),
            on_interrupted=lambda exc: self.finishedSummary.emit(self._unresolved(str(exc))),
        )
