from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QCloseEvent, QIcon
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPlainTextEdit,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from ..core.config import APP_NAME, APP_VERSION
from ..core.models import AudioFormat, ConvertState
from .theme import ThemePalette, build_stylesheet, get_theme
from .title_bar import TitleBar

LOG_MAX_BLOCKS = 2000


class MainWindow(QMainWindow):
    convertRequested = Signal()
    showVideoLinkRequested = Signal()
    playRequested = Signal()
    showInFolderRequested = Signal()
    downloadFfmpegRequested = Signal()
    audioFormatChanged = Signal(str)
    audioBitrateChanged = Signal(int)
    useSystemTitleBarChanged = Signal(bool)
    checkForUpdatesChanged = Signal(bool)
    themeModeChanged = Signal(str)

    def __init__(
        self,
        theme: ThemePalette,
        *,
        use_system_title_bar: bool = True,
        icon_path: Path | None = None,
    ) -> None:
        super().__init__()
        self.theme = theme
        self._close_handler: Callable[[], bool] | None = None
        self._pages: dict[str, int] = {}
        self._settings_updating = False
        self.title_bar: TitleBar | None = None

        self.setWindowTitle(APP_NAME)
        if not use_system_title_bar:
            self.setWindowFlag(Qt.FramelessWindowHint, True)
        if icon_path and icon_path.exists():
            self.setWindowIcon(QIcon(str(icon_path)))
        self.resize(460, 560)

        self._build_ui(use_system_title_bar=use_system_title_bar)
        self.apply_theme(theme)
        self.set_convert_state(ConvertState.WAITING_FOR_CLIPBOARD_CONTENT.value)

    def _build_ui(self, *, use_system_title_bar: bool) -> None:
        root = QWidget(self)
        root.setObjectName("vitomuRoot")
        root_layout = QVBoxLayout(root)
        root_layout.setContentsMargins(0, 0, 0, 0)
        root_layout.setSpacing(0)
        if not use_system_title_bar:
            self.title_bar = TitleBar(APP_NAME, root)
            root_layout.addWidget(self.title_bar)

        body = QWidget(root)
        body_layout = QVBoxLayout(body)
        body_layout.setContentsMargins(12, 12, 12, 12)
        body_layout.setSpacing(10)
        root_layout.addWidget(body, 1)

        card = QFrame(body)
        card.setObjectName("card")
        card_layout = QVBoxLayout(card)
        card_layout.setContentsMargins(14, 14, 14, 14)
        self.state_stack = QStackedWidget(card)
        card_layout.addWidget(self.state_stack)
        body_layout.addWidget(card)

        self._build_state_pages()
        body_layout.addWidget(self._build_settings_panel(body))

        self.console_output = QPlainTextEdit(body)
        self.console_output.setObjectName("console")
        self.console_output.setReadOnly(True)
        self.console_output.setMaximumBlockCount(LOG_MAX_BLOCKS)
        body_layout.addWidget(self.console_output, 1)

        footer = QLabel(f"{APP_NAME} {APP_VERSION}", body)
        footer.setObjectName("muted")
        footer.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        body_layout.addWidget(footer)

        self.setCentralWidget(root)

    def _add_page(self, state: ConvertState, page: QWidget) -> None:
        self._pages[state.value] = self.state_stack.addWidget(page)

    @staticmethod
    def _page_layout(page: QWidget) -> QVBoxLayout:
        layout = QVBoxLayout(page)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)
        layout.setAlignment(Qt.AlignCenter)
        return layout

    def _headline(self, text: str, parent: QWidget, *, object_name: str = "stateHeadline") -> QLabel:
        label = QLabel(text, parent)
        label.setObjectName(object_name)
        label.setAlignment(Qt.AlignCenter)
        label.setWordWrap(True)
        return label

    def _build_state_pages(self) -> None:
        waiting = QWidget(self.state_stack)
        layout = self._page_layout(waiting)
        layout.addWidget(self._headline("Copy a YouTube link", waiting))
        hint = QLabel("Vitomu picks it up from the clipboard.", waiting)
        hint.setObjectName("muted")
        hint.setAlignment(Qt.AlignCenter)
        layout.addWidget(hint)
        self._add_page(ConvertState.WAITING_FOR_CLIPBOARD_CONTENT, waiting)

        has_content = QWidget(self.state_stack)
        layout = self._page_layout(has_content)
        layout.addWidget(self._headline("Link found", has_content))
        self.download_url_label = QLabel("", has_content)
        self.download_url_label.setObjectName("muted")
        self.download_url_label.setAlignment(Qt.AlignCenter)
        self.download_url_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        layout.addWidget(self.download_url_label)
        actions = QHBoxLayout()
        self.convert_button = QPushButton("Convert", has_content)
        self.convert_button.setObjectName("convertButton")
        self.convert_button.setCursor(Qt.PointingHandCursor)
        self.convert_button.clicked.connect(self.convertRequested.emit)
        self.show_link_button = QPushButton("Show link", has_content)
        self.show_link_button.setCursor(Qt.PointingHandCursor)
        self.show_link_button.clicked.connect(self.showVideoLinkRequested.emit)
        actions.addWidget(self.convert_button, 1)
        actions.addWidget(self.show_link_button)
        layout.addLayout(actions)
        self._add_page(ConvertState.HAS_VALID_CLIPBOARD_CONTENT, has_content)

        converting = QWidget(self.state_stack)
        layout = self._page_layout(converting)
        layout.addWidget(self._headline("Converting...", converting))
        self.convert_progress = QProgressBar(converting)
        self.convert_progress.setObjectName("convertProgress")
        self.convert_progress.setRange(0, 100)
        self.convert_progress.setValue(0)
        self.convert_progress.setFormat("%p%")
        layout.addWidget(self.convert_progress)
        self._add_page(ConvertState.CONVERTING, converting)

        successful = QWidget(self.state_stack)
        layout = self._page_layout(successful)
        layout.addWidget(self._headline("Conversion successful", successful, object_name="successText"))
        self.converted_file_label = QLabel("", successful)
        self.converted_file_label.setObjectName("muted")
        self.converted_file_label.setAlignment(Qt.AlignCenter)
        self.converted_file_label.setWordWrap(True)
        layout.addWidget(self.converted_file_label)
        actions = QHBoxLayout()
        self.play_button = QPushButton("Play", successful)
        self.play_button.setCursor(Qt.PointingHandCursor)
        self.play_button.clicked.connect(self.playRequested.emit)
        self.show_in_folder_button = QPushButton("Show in folder", successful)
        self.show_in_folder_button.setCursor(Qt.PointingHandCursor)
        self.show_in_folder_button.clicked.connect(self.showInFolderRequested.emit)
        actions.addWidget(self.play_button)
        actions.addWidget(self.show_in_folder_button)
        layout.addLayout(actions)
        self._add_page(ConvertState.SUCCESSFUL, successful)

        failed = QWidget(self.state_stack)
        layout = self._page_layout(failed)
        layout.addWidget(self._headline("Conversion failed", failed, object_name="failedText"))
        self.failure_hint_label = QLabel("", failed)
        self.failure_hint_label.setObjectName("muted")
        self.failure_hint_label.setAlignment(Qt.AlignCenter)
        self.failure_hint_label.setWordWrap(True)
        layout.addWidget(self.failure_hint_label)
        self._add_page(ConvertState.FAILED, failed)

        not_found = QWidget(self.state_stack)
        layout = self._page_layout(not_found)
        layout.addWidget(self._headline("FFmpeg was not found", not_found, object_name="failedText"))
        explanation = QLabel("Vitomu needs FFmpeg and yt-dlp to convert videos.", not_found)
        explanation.setObjectName("muted")
        explanation.setAlignment(Qt.AlignCenter)
        explanation.setWordWrap(True)
        layout.addWidget(explanation)
        self.download_ffmpeg_button = QPushButton("Download FFmpeg", not_found)
        self.download_ffmpeg_button.setObjectName("convertButton")
        self.download_ffmpeg_button.setCursor(Qt.PointingHandCursor)
        self.download_ffmpeg_button.clicked.connect(self.downloadFfmpegRequested.emit)
        layout.addWidget(self.download_ffmpeg_button)
        self._add_page(ConvertState.FFMPEG_NOT_FOUND, not_found)

    def _build_settings_panel(self, parent: QWidget) -> QFrame:
        panel = QFrame(parent)
        panel.setObjectName("settingsPanel")
        grid = QGridLayout(panel)
        grid.setContentsMargins(12, 10, 12, 10)
        grid.setHorizontalSpacing(10)
        grid.setVerticalSpacing(6)

        grid.addWidget(QLabel("Format", panel), 0, 0)
        self.audio_format_combo = QComboBox(panel)
        self.audio_format_combo.currentIndexChanged.connect(self._on_audio_format_index_changed)
        grid.addWidget(self.audio_format_combo, 0, 1)

        grid.addWidget(QLabel("Bitrate", panel), 1, 0)
        self.audio_bitrate_combo = QComboBox(panel)
        self.audio_bitrate_combo.currentIndexChanged.connect(self._on_audio_bitrate_index_changed)
        grid.addWidget(self.audio_bitrate_combo, 1, 1)

        self.system_title_bar_checkbox = QCheckBox("Use system title bar", panel)
        self.system_title_bar_checkbox.toggled.connect(self._on_system_title_bar_toggled)
        grid.addWidget(self.system_title_bar_checkbox, 2, 0, 1, 2)
        restart_hint = QLabel("Takes effect after a restart.", panel)
        restart_hint.setObjectName("settingsSubtext")
        grid.addWidget(restart_hint, 3, 0, 1, 2)

        self.check_updates_checkbox = QCheckBox("Check for updates at startup", panel)
        self.check_updates_checkbox.toggled.connect(self._on_check_updates_toggled)
        grid.addWidget(self.check_updates_checkbox, 4, 0, 1, 2)

        self.light_theme_checkbox = QCheckBox("Light theme", panel)
        self.light_theme_checkbox.toggled.connect(self._on_light_theme_toggled)
        grid.addWidget(self.light_theme_checkbox, 5, 0, 1, 2)
        grid.setColumnStretch(1, 1)
        return panel

    def apply_theme(self, theme: ThemePalette) -> None:
        self.theme = theme
        self.setStyleSheet(build_stylesheet(theme))

    def set_close_handler(self, handler: Callable[[], bool] | None) -> None:
        self._close_handler = handler

    def closeEvent(self, event: QCloseEvent) -> None:
        if self._close_handler is not None and not self._close_handler():
            event.ignore()
            return
        event.accept()

    def current_page_state(self) -> str:
        index = self.state_stack.currentIndex()
        for state, page_index in self._pages.items():
            if page_index == index:
                return state
        return ""

    def set_convert_state(self, convert_state: str) -> None:
        index = self._pages.get(str(convert_state or ""))
        if index is None:
            return
        self.state_stack.setCurrentIndex(index)

    def set_convert_progress(self, percent: int) -> None:
        clamped = max(0, min(100, int(percent)))
        if self.convert_progress.value() != clamped:
            self.convert_progress.setValue(clamped)

    def set_download_url(self, url: str) -> None:
        self.download_url_label.setText(str(url or ""))

    def set_converted_file_name(self, name: str) -> None:
        self.converted_file_label.setText(str(name or ""))

    def set_failure_hint(self, text: str) -> None:
        self.failure_hint_label.setText(str(text or ""))

    def set_dependency_busy(self, busy: bool) -> None:
        self.download_ffmpeg_button.setEnabled(not busy)
        self.download_ffmpeg_button.setText("Downloading..." if busy else "Download FFmpeg")

    def set_audio_formats(self, formats: Sequence[AudioFormat], selected_id: str) -> None:
        self._settings_updating = True
        try:
            self.audio_format_combo.clear()
            for item in formats:
                self.audio_format_combo.addItem(item.name, item.id)
            index = self.audio_format_combo.findData(selected_id)
            self.audio_format_combo.setCurrentIndex(max(0, index))
        finally:
            self._settings_updating = False

    def set_audio_bitrates(self, bitrates: Sequence[int], selected: int) -> None:
        self._settings_updating = True
        try:
            self.audio_bitrate_combo.clear()
            for bitrate in bitrates:
                self.audio_bitrate_combo.addItem(f"{bitrate} kbps", int(bitrate))
            index = self.audio_bitrate_combo.findData(int(selected))
            self.audio_bitrate_combo.setCurrentIndex(max(0, index))
        finally:
            self._settings_updating = False

    def set_settings(self, *, use_system_title_bar: bool, check_for_updates: bool, theme_mode: str) -> None:
        self._settings_updating = True
        try:
            self.system_title_bar_checkbox.setChecked(bool(use_system_title_bar))
            self.check_updates_checkbox.setChecked(bool(check_for_updates))
            self.light_theme_checkbox.setChecked(str(theme_mode) == "light")
        finally:
            self._settings_updating = False

    def _on_audio_format_index_changed(self, index: int) -> None:
        if self._settings_updating or index < 0:
            return
        self.audioFormatChanged.emit(str(self.audio_format_combo.itemData(index) or ""))

    def _on_audio_bitrate_index_changed(self, index: int) -> None:
        if self._settings_updating or index < 0:
            return
        self.audioBitrateChanged.emit(int(self.audio_bitrate_combo.itemData(index) or 0))

    def _on_system_title_bar_toggled(self, checked: bool) -> None:
        if not self._settings_updating:
            self.useSystemTitleBarChanged.emit(bool(checked))

    def _on_check_updates_toggled(self, checked: bool) -> None:
        if not self._settings_updating:
            self.checkForUpdatesChanged.emit(bool(checked))

    def _on_light_theme_toggled(self, checked: bool) -> None:
        if self._settings_updating:
            return
        mode = "light" if checked else "dark"
        self.apply_theme(get_theme(mode))
        self.themeModeChanged.emit(mode)

    def append_log(self, text: str) -> None:
        value = str(text or "").strip()
        if not value:
            return
        self.console_output.appendPlainText(value)
        self.console_output.verticalScrollBar().setValue(self.console_output.verticalScrollBar().maximum())
