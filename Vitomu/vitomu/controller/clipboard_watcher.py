from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtGui import QClipboard, QGuiApplication

from ..core.config import CLIPBOARD_POLL_INTERVAL_MS


class ClipboardWatcher(QObject):
    """Emits the clipboard text each time it changes.

    ``dataChanged`` is not delivered on every platform, so the clipboard is
    also polled on a timer.
    """

    clipboardContentChanged = Signal(str)

    def __init__(
        self,
        clipboard: QClipboard | None = None,
        *,
        interval_ms: int = CLIPBOARD_POLL_INTERVAL_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._clipboard = clipboard
        self._last_text: str | None = None
        self._running = False
        self._poll_timer = QTimer(self)
        self._poll_timer.setSingleShot(False)
        self._poll_timer.setInterval(max(50, int(interval_ms)))
        self._poll_timer.timeout.connect(self.poll)

    def _resolve_clipboard(self) -> QClipboard | None:
        if self._clipboard is None:
            self._clipboard = QGuiApplication.clipboard()
        return self._clipboard

    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        clipboard = self._resolve_clipboard()
        if clipboard is None:
            return
        self._running = True
        clipboard.dataChanged.connect(self.poll)
        self._poll_timer.start()
        self.poll()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._poll_timer.stop()
        clipboard = self._resolve_clipboard()
        if clipboard is not None:
            try:
                clipboard.dataChanged.disconnect(self.poll)
            except (RuntimeError, TypeError):
                pass

    def poll(self) -> None:
        clipboard = self._resolve_clipboard()
        if clipboard is None:
            return
        text = str(clipboard.text() or "")
        if text == self._last_text:
            return
        self._last_text = text
        self.clipboardContentChanged.emit(text)
