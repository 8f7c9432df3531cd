from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, Qt, QTimer, Signal, SignalInstance

from ..core.config import RESET_DELAY_MS
from ..core.models import (
    CLIPBOARD_AWARE_CONVERT_STATES,
    TERMINAL_CONVERT_STATES,
    ConvertState,
    normalize_convert_state,
)
from .clipboard_watcher import ClipboardWatcher


class ConvertStateMachine(QObject):
    """Maps clipboard, progress and conversion events onto a ``ConvertState``.

    Subscriptions exist only between ``start()`` and ``stop()``. Service
    signals are queued so their handlers always run on this object's
    thread, even when the service emits from a worker thread. Once stopped,
    the handlers ignore calls that were queued before ``stop()``.
    """

    convertStateChanged = Signal(str)
    progressPercentChanged = Signal(int)
    downloadUrlChanged = Signal(str)
    convertRequested = Signal(str)

    def __init__(
        self,
        service,
        clipboard_watcher: ClipboardWatcher,
        *,
        reset_delay_ms: int = RESET_DELAY_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._service = service
        self._clipboard_watcher = clipboard_watcher
        self._subscriptions: list[tuple[SignalInstance, Callable[..., None]]] = []
        self._convert_state = ConvertState.WAITING_FOR_CLIPBOARD_CONTENT.value
        self._progress_percent = 0
        self._download_url = ""
        self._last_clipboard_text = ""
        self._reset_timer = QTimer(self)
        self._reset_timer.setSingleShot(True)
        self._reset_timer.setInterval(max(0, int(reset_delay_ms)))
        self._reset_timer.timeout.connect(self.reset_state)

    @property
    def convert_state(self) -> str:
        return self._convert_state

    @property
    def progress_percent(self) -> int:
        return self._progress_percent

    @property
    def download_url(self) -> str:
        return self._download_url

    def is_started(self) -> bool:
        return bool(self._subscriptions)

    @property
    def reset_delay_ms(self) -> int:
        return self._reset_timer.interval()

    def is_reset_pending(self) -> bool:
        return self._reset_timer.isActive()

    def start(self) -> None:
        if self._subscriptions:
            return
        self._subscribe(
            self._service.convertStateChanged,
            self.handle_convert_state_changed,
            Qt.ConnectionType.QueuedConnection,
        )
        self._subscribe(
            self._service.convertProgressChanged,
            self.handle_convert_progress_changed,
            Qt.ConnectionType.QueuedConnection,
        )
        self._subscribe(
            self._clipboard_watcher.clipboardContentChanged,
            self.handle_clipboard_content_changed,
            Qt.ConnectionType.AutoConnection,
        )

    def stop(self) -> None:
        self._reset_timer.stop()
        subscriptions, self._subscriptions = self._subscriptions, []
        for signal, slot in subscriptions:
            try:
                signal.disconnect(slot)
            except (RuntimeError, TypeError):
                pass

    def _subscribe(
        self,
        signal: SignalInstance,
        slot: Callable[..., None],
        connection_type: Qt.ConnectionType,
    ) -> None:
        signal.connect(slot, connection_type)
        self._subscriptions.append((signal, slot))

    def on_prerequisites_checked(self, available: bool) -> None:
        if not self._subscriptions:
            return
        if not available:
            self._reset_timer.stop()
            self._set_download_url("")
            self._set_convert_state(ConvertState.FFMPEG_NOT_FOUND.value)
            return
        if self._convert_state != ConvertState.FFMPEG_NOT_FOUND.value:
            return
        self.reset_state()
        if self._last_clipboard_text:
            self.handle_clipboard_content_changed(self._last_clipboard_text)

    def perform_convert(self) -> bool:
        if self._convert_state != ConvertState.HAS_VALID_CLIPBOARD_CONTENT.value:
            return False
        if not self._download_url:
            return False
        # The URL is fixed from here on; later clipboard events are ignored.
        self._set_convert_state(ConvertState.CONVERTING.value)
        self.convertRequested.emit(self._download_url)
        return True

    def reset_state(self) -> None:
        self._set_convert_state(ConvertState.WAITING_FOR_CLIPBOARD_CONTENT.value)
        self._set_progress_percent(0)
        self._set_download_url("")

    def handle_convert_state_changed(self, convert_state: str) -> None:
        if not self._subscriptions:
            return
        state = normalize_convert_state(convert_state)
        self._set_convert_state(state)
        if state in TERMINAL_CONVERT_STATES:
            self._reset_timer.start()
        else:
            self._reset_timer.stop()

    def handle_convert_progress_changed(self, progress_percent: int) -> None:
        if not self._subscriptions:
            return
        self._set_progress_percent(int(progress_percent))

    def handle_clipboard_content_changed(self, clipboard_text: str) -> None:
        if not self._subscriptions:
            return
        text = str(clipboard_text or "")
        self._last_clipboard_text = text
        # Only idle states react to the clipboard; a running or finished
        # conversion keeps its URL until the reset.
        if self._convert_state not in CLIPBOARD_AWARE_CONVERT_STATES:
            return
        if self._service.is_video_url_convertible(text):
            self._set_convert_state(ConvertState.HAS_VALID_CLIPBOARD_CONTENT.value)
            self._set_download_url(text)
        else:
            self.reset_state()

    def _set_convert_state(self, value: str) -> None:
        if value == self._convert_state:
            return
        self._convert_state = value
        self.convertStateChanged.emit(value)

    def _set_progress_percent(self, value: int) -> None:
        if value == self._progress_percent:
            return
        self._progress_percent = value
        self.progressPercentChanged.emit(value)

    def _set_download_url(self, value: str) -> None:
        if value == self._download_url:
            return
        self._download_url = value
        self.downloadUrlChanged.emit(value)
