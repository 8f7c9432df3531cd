from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ThemePalette:
    mode: str
    app_bg: str
    panel_bg: str
    border: str
    text_primary: str
    text_secondary: str
    accent: str
    accent_hover: str
    danger: str
    success: str
    disabled_bg: str
    disabled_fg: str


DARK_THEME = ThemePalette(
    mode="dark",
    app_bg="#1D1D1F",
    panel_bg="#262629",
    border="#38383C",
    text_primary="#F4F4F5",
    text_secondary="#A9A9B0",
    accent="#E2456F",
    accent_hover="#F0688D",
    danger="#D9485F",
    success="#3DBE72",
    disabled_bg="#2C2C30",
    disabled_fg="#7E7E86",
)

LIGHT_THEME = ThemePalette(
    mode="light",
    app_bg="#F3F3F5",
    panel_bg="#FFFFFF",
    border="#D6D6DC",
    text_primary="#1C1C22",
    text_secondary="#5A5A66",
    accent="#D63862",
    accent_hover="#E2567C",
    danger="#C0304A",
    success="#23974F",
    disabled_bg="#E7E7EC",
    disabled_fg="#8A8A96",
)


def get_theme(mode: str | None) -> ThemePalette:
    if str(mode or "").strip().lower() == "light":
        return LIGHT_THEME
    return DARK_THEME


def build_stylesheet(theme: ThemePalette) -> str:
    return f"""
QMainWindow, QWidget#vitomuRoot {{
    background: {theme.app_bg};
}}
QFrame#card, QFrame#settingsPanel {{
    background: {theme.panel_bg};
    border: 1px solid {theme.border};
    border-radius: 8px;
}}
QFrame#titleBar {{
    background: {theme.panel_bg};
    border-bottom: 1px solid {theme.border};
}}
QLabel {{
    color: {theme.text_primary};
    background: transparent;
    font-family: "Segoe UI";
    font-size: 9.7pt;
}}
QLabel#title {{
    font: 700 10.8pt "Segoe UI";
}}
QLabel#stateHeadline {{
    font: 700 13pt "Segoe UI";
}}
QLabel#muted, QLabel#settingsSubtext {{
    color: {theme.text_secondary};
    font: 600 8.6pt "Segoe UI";
}}
QLabel#successText {{
    color: {theme.success};
    font: 700 13pt "Segoe UI";
}}
QLabel#failedText {{
    color: {theme.danger};
    font: 700 13pt "Segoe UI";
}}
QPushButton {{
    background: {theme.panel_bg};
    color: {theme.text_primary};
    border: 1px solid {theme.border};
    border-radius: 6px;
    padding: 4px 10px;
    font: 600 9.1pt "Segoe UI";
}}
QPushButton:hover {{
    background: {theme.accent};
}}
QPushButton:disabled {{
    background: {theme.disabled_bg};
    color: {theme.disabled_fg};
}}
QPushButton#convertButton {{
    background: {theme.accent};
    border: 1px solid {theme.accent};
    min-height: 34px;
    font: 700 10.4pt "Segoe UI";
}}
QPushButton#convertButton:hover {{
    background: {theme.accent_hover};
}}
QPushButton#titleBarButton {{
    background: transparent;
    border: none;
    min-width: 28px;
    max-width: 28px;
}}
QComboBox {{
    background: {theme.app_bg};
    color: {theme.text_primary};
    border: 1px solid {theme.border};
    border-radius: 6px;
    padding: 2px 8px;
    min-height: 24px;
}}
QCheckBox {{
    color: {theme.text_primary};
    font: 600 9.1pt "Segoe UI";
    spacing: 8px;
}}
QProgressBar#convertProgress {{
    background: {theme.app_bg};
    border: 1px solid {theme.border};
    border-radius: 4px;
    min-height: 22px;
    max-height: 22px;
    text-align: center;
    color: {theme.text_primary};
    font: 700 8.8pt "Segoe UI";
}}
QProgressBar#convertProgress::chunk {{
    background: {theme.accent};
    border-radius: 4px;
}}
QPlainTextEdit#console {{
    background: {theme.app_bg};
    color: {theme.text_secondary};
    border: 1px solid {theme.border};
    border-radius: 6px;
    font: 8.6pt "Consolas";
}}
"""
