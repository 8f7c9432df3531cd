from __future__ import annotations

import webbrowser
from datetime import datetime

from PySide6.QtCore import QByteArray, QObject, QThread, QTimer, Qt
from PySide6.QtWidgets import QMessageBox

from .controller.clipboard_watcher import ClipboardWatcher
from .controller.convert_flow import ConvertStateMachine
from .controller.error_policy import classify_conversion_error, failure_hint, format_classified_error
from .core.config import APP_NAME, APP_VERSION
from .core.convert_service import ConvertService, find_audio_format
from .core.desktop import open_in_default_application, show_in_folder
from .core.models import ConversionResult, ConvertState, UpdateCheckResult
from .core.paths import log_file_path, resolve_app_asset
from .core.settings import Settings
from .core.update_service import UpdateService
from .ui.dialogs import build_message_box, exec_dialog
from .ui.main_window import MainWindow
from .ui.theme import get_theme
from .workers.base_worker import BaseWorker
from .workers.convert_worker import ConvertWorker
from .workers.dependency_worker import PrerequisitesWorker
from .workers.update_worker import UpdateWorker

AUTO_UPDATE_START_DELAY_MS = 2600
THREAD_SHUTDOWN_TIMEOUT_MS = 3000


class AppController(QObject):
    def __init__(self, app, *, settings: Settings | None = None) -> None:
        super().__init__()
        self.app = app
        self.settings = settings or Settings()

        icon_path = resolve_app_asset("icon.ico")
        self.window = MainWindow(
            get_theme(self.settings.theme_mode),
            use_system_title_bar=self.settings.use_system_title_bar,
            icon_path=icon_path,
        )
        self.window.set_close_handler(self._on_close_request)
        self.settings.set_save_failure_handler(self._append_log)

        self.convert_service = ConvertService(self.settings, parent=self)
        self.update_service = UpdateService()
        self.clipboard_watcher = ClipboardWatcher(app.clipboard(), parent=self)
        self.state_machine = ConvertStateMachine(self.convert_service, self.clipboard_watcher, parent=self)

        self._prerequisites_thread: QThread | None = None
        self._prerequisites_worker: PrerequisitesWorker | None = None
        self._convert_thread: QThread | None = None
        self._convert_worker: ConvertWorker | None = None
        self._update_thread: QThread | None = None
        self._update_worker: UpdateWorker | None = None
        self._log_write_failed = False

        self.window.set_audio_formats(
            self.convert_service.audio_formats,
            self.convert_service.selected_audio_format.id,
        )
        self.window.set_audio_bitrates(
            self.convert_service.audio_bitrates,
            self.convert_service.selected_audio_bitrate,
        )
        self.window.set_settings(
            use_system_title_bar=self.settings.use_system_title_bar,
            check_for_updates=self.settings.check_for_updates,
            theme_mode=self.settings.theme_mode,
        )

        self._connect_signals()
        self._restore_geometry()

    def run(self) -> None:
        self.window.show()
        self._append_log(f"{APP_NAME} {APP_VERSION} started.")
        self.state_machine.start()
        self.clipboard_watcher.start()
        self.start_prerequisites_check()
        if self.settings.check_for_updates:
            QTimer.singleShot(AUTO_UPDATE_START_DELAY_MS, self.start_update_check)

    def _connect_signals(self) -> None:
        self.window.convertRequested.connect(self.perform_convert)
        self.window.showVideoLinkRequested.connect(self.show_video_link)
        self.window.playRequested.connect(self.play)
        self.window.showInFolderRequested.connect(self.view_in_folder)
        self.window.downloadFfmpegRequested.connect(self.download_ffmpeg)
        self.window.audioFormatChanged.connect(self._on_audio_format_changed)
        self.window.audioBitrateChanged.connect(self._on_audio_bitrate_changed)
        self.window.useSystemTitleBarChanged.connect(self.settings.set_use_system_title_bar)
        self.window.checkForUpdatesChanged.connect(self.settings.set_check_for_updates)
        self.window.themeModeChanged.connect(self.settings.set_theme_mode)

        self.state_machine.convertStateChanged.connect(self._on_convert_state_changed)
        self.state_machine.progressPercentChanged.connect(self.window.set_convert_progress)
        self.state_machine.downloadUrlChanged.connect(self.window.set_download_url)
        self.state_machine.convertRequested.connect(self._start_convert_worker)

        self.convert_service.logChanged.connect(self._append_log, Qt.ConnectionType.QueuedConnection)

    def _append_log(self, message: str) -> None:
        text = str(message or "").strip()
        if not text:
            return
        line = f"{datetime.now().strftime('%Y-%m-%d %H:%M:%S')} {text}"
        self.window.append_log(line)
        if self._log_write_failed:
            return
        try:
            path = log_file_path()
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(f"{line}\n")
        except (OSError, RuntimeError) as exc:
            self._log_write_failed = True
            self.window.append_log(f"Log file disabled: {exc}")

    def _restore_geometry(self) -> None:
        encoded = str(self.settings.window_geometry or "").strip()
        if not encoded:
            return
        try:
            payload = QByteArray.fromBase64(encoded.encode("ascii"))
            if payload:
                self.window.restoreGeometry(payload)
        except (UnicodeEncodeError, ValueError):
            return

    def _save_geometry(self) -> None:
        try:
            encoded = self.window.saveGeometry().toBase64().data().decode("ascii")
        except (UnicodeDecodeError, ValueError):
            encoded = ""
        self.settings.set_window_geometry(encoded)

    def _start_worker(self, worker: BaseWorker, *, on_summary, on_finished) -> QThread:
        thread = QThread(self)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.logChanged.connect(self._append_log, Qt.ConnectionType.QueuedConnection)
        worker.errorRaised.connect(self._on_worker_error, Qt.ConnectionType.QueuedConnection)
        worker.finishedSummary.connect(on_summary, Qt.ConnectionType.QueuedConnection)
        worker.finished.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        thread.finished.connect(on_finished, Qt.ConnectionType.QueuedConnection)
        thread.finished.connect(thread.deleteLater)
        thread.start()
        return thread

    def _on_worker_error(self, job_name: str, error: str) -> None:
        self._append_log(f"[{job_name}] {error}")

    def start_prerequisites_check(self, *, download_ffmpeg: bool = False) -> None:
        if self._prerequisites_thread is not None:
            return
        self.window.set_dependency_busy(True)
        self._append_log("Checking prerequisites...")
        worker = PrerequisitesWorker(self.convert_service, download_ffmpeg=download_ffmpeg)
        self._prerequisites_worker = worker
        self._prerequisites_thread = self._start_worker(
            worker,
            on_summary=self._on_prerequisites_summary,
            on_finished=self._on_prerequisites_finished,
        )

    def download_ffmpeg(self) -> None:
        self.start_prerequisites_check(download_ffmpeg=True)

    def _on_prerequisites_summary(self, available: object) -> None:
        ok = bool(available)
        self._append_log("Prerequisites are available." if ok else "FFmpeg or yt-dlp was not found.")
        self.state_machine.on_prerequisites_checked(ok)

    def _on_prerequisites_finished(self) -> None:
        self.window.set_dependency_busy(False)
        self._prerequisites_thread = None
        self._prerequisites_worker = None

    def perform_convert(self) -> None:
        if self._convert_thread is not None:
            return
        self.state_machine.perform_convert()

    def _start_convert_worker(self, video_url: str) -> None:
        if self._convert_thread is not None:
            return
        self.window.set_failure_hint("")
        worker = ConvertWorker(self.convert_service, video_url)
        self._convert_worker = worker
        self._convert_thread = self._start_worker(
            worker,
            on_summary=self._on_convert_summary,
            on_finished=self._on_convert_finished,
        )

    def _on_convert_summary(self, result: object) -> None:
        if not isinstance(result, ConversionResult):
            return
        if result.is_conversion_successful:
            self.window.set_converted_file_name(self.convert_service.last_converted_file_name)
            return
        category = classify_conversion_error(result.error)
        self._append_log(format_classified_error(result.error))
        self.window.set_failure_hint(failure_hint(category))

    def _on_convert_finished(self) -> None:
        self._convert_thread = None
        self._convert_worker = None

    def _on_convert_state_changed(self, convert_state: str) -> None:
        self.window.set_convert_state(convert_state)
        if convert_state == ConvertState.FFMPEG_NOT_FOUND.value:
            self.window.set_dependency_busy(self._prerequisites_thread is not None)

    def start_update_check(self) -> None:
        if self._update_thread is not None:
            return
        worker = UpdateWorker(self.update_service, APP_VERSION)
        self._update_worker = worker
        self._update_thread = self._start_worker(
            worker,
            on_summary=self._on_update_summary,
            on_finished=self._on_update_finished,
        )

    def _on_update_summary(self, result: object) -> None:
        if not isinstance(result, UpdateCheckResult) or result.error:
            return
        if not result.update_available:
            self._append_log(f"{APP_NAME} is up to date ({result.current_version}).")
            return
        self._append_log(f"{APP_NAME} {result.latest_version} is available.")
        answer = self._ask_yes_no(
            "Update available",
            f"{APP_NAME} {result.latest_version} is available (you have {result.current_version}).\n\n"
            "Open the download page?",
            default_button=QMessageBox.Yes,
        )
        if answer == QMessageBox.Yes and result.download_url:
            webbrowser.open(result.download_url)

    def _on_update_finished(self) -> None:
        self._update_thread = None
        self._update_worker = None

    def _on_audio_format_changed(self, format_id: str) -> None:
        self.convert_service.select_audio_format(find_audio_format(format_id))

    def _on_audio_bitrate_changed(self, bitrate: int) -> None:
        self.convert_service.select_audio_bitrate(int(bitrate))

    def show_video_link(self) -> None:
        url = self.state_machine.download_url
        if url:
            self._show_info("Video link", url)

    def play(self) -> None:
        try:
            open_in_default_application(self.convert_service.last_converted_file_path)
        except OSError as exc:
            self._show_warning("Could not open file", str(exc))

    def view_in_folder(self) -> None:
        try:
            show_in_folder(self.convert_service.last_converted_file_path)
        except OSError as exc:
            self._show_warning("Could not open folder", str(exc))

    def _show_info(self, title: str, text: str) -> int:
        return exec_dialog(build_message_box(self.window, self.window.theme, kind="info", title=title, text=text))

    def _show_warning(self, title: str, text: str) -> int:
        return exec_dialog(build_message_box(self.window, self.window.theme, kind="warning", title=title, text=text))

    def _ask_yes_no(
        self,
        title: str,
        text: str,
        *,
        default_button: QMessageBox.StandardButton = QMessageBox.NoButton,
    ) -> int:
        return exec_dialog(
            build_message_box(
                self.window,
                self.window.theme,
                kind="question",
                title=title,
                text=text,
                buttons=QMessageBox.Yes | QMessageBox.No,
                default_button=default_button,
            )
        )

    def _running_threads(self) -> list[QThread]:
        running: list[QThread] = []
        for thread in (self._prerequisites_thread, self._convert_thread, self._update_thread):
            if thread is None:
                continue
            try:
                if thread.isRunning():
                    running.append(thread)
            except RuntimeError:
                continue
        return running

    def _on_close_request(self) -> bool:
        self._save_geometry()
        self.state_machine.stop()
        self.clipboard_watcher.stop()
        for worker in (self._prerequisites_worker, self._convert_worker, self._update_worker):
            if worker is None:
                continue
            try:
                worker.stop()
            except RuntimeError:
                continue
        for thread in self._running_threads():
            thread.quit()
            thread.wait(THREAD_SHUTDOWN_TIMEOUT_MS)
        return True
