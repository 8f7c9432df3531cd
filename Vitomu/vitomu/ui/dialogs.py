from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox, QPushButton, QWidget

from ..core.config import APP_NAME
from .theme import ThemePalette

_ICONS = {
    "info": QMessageBox.Information,
    "warning": QMessageBox.Warning,
    "question": QMessageBox.Question,
}


def dialog_stylesheet(theme: ThemePalette) -> str:
    return (
        f"QMessageBox {{ background: {theme.panel_bg}; color: {theme.text_primary}; }}"
        f"QLabel {{ color: {theme.text_primary}; background: transparent; }}"
        f"QPushButton {{ background: {theme.app_bg}; color: {theme.text_primary}; border: 1px solid {theme.border};"
        f" border-radius: 6px; padding: 5px 14px; min-height: 24px; }}"
        f"QPushButton:hover {{ background: {theme.accent_hover}; }}"
        f"QPushButton:default {{ border-color: {theme.accent}; }}"
    )


def _themed_palette(widget: QWidget, theme: ThemePalette) -> QPalette:
    palette = widget.palette()
    for role, color in (
        (QPalette.Window, theme.panel_bg),
        (QPalette.WindowText, theme.text_primary),
        (QPalette.Base, theme.app_bg),
        (QPalette.Text, theme.text_primary),
        (QPalette.Button, theme.app_bg),
        (QPalette.ButtonText, theme.text_primary),
    ):
        palette.setColor(role, QColor(color))
    return palette


def build_message_box(
    parent: QWidget,
    theme: ThemePalette,
    *,
    kind: str,
    title: str,
    text: str,
    buttons: QMessageBox.StandardButtons = QMessageBox.Ok,
    default_button: QMessageBox.StandardButton = QMessageBox.NoButton,
) -> QMessageBox:
    box = QMessageBox(parent)
    box.setOption(QMessageBox.DontUseNativeDialog, True)
    box.setIcon(_ICONS.get(kind, QMessageBox.NoIcon))
    box.setWindowTitle(str(title or APP_NAME))
    box.setText(str(text or ""))
    box.setTextInteractionFlags(Qt.TextSelectableByMouse)
    box.setStandardButtons(buttons)
    if default_button != QMessageBox.NoButton:
        box.setDefaultButton(default_button)
    icon = parent.windowIcon() if parent is not None else None
    if icon is not None and not icon.isNull():
        box.setWindowIcon(icon)
    box.setStyleSheet(dialog_stylesheet(theme))
    box.setPalette(_themed_palette(box, theme))
    box.setAutoFillBackground(True)
    for button in box.findChildren(QPushButton):
        button.setCursor(Qt.PointingHandCursor)
    return box


def exec_dialog(dialog: QWidget) -> int:
    try:
        return int(dialog.exec())
    finally:
        while QApplication.overrideCursor() is not None:
            QApplication.restoreOverrideCursor()
