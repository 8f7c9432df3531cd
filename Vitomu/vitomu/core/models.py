from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ConvertState(StrEnum):
    WAITING_FOR_CLIPBOARD_CONTENT = "waiting_for_clipboard_content"
    HAS_VALID_CLIPBOARD_CONTENT = "has_valid_clipboard_content"
    CONVERTING = "converting"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    FFMPEG_NOT_FOUND = "ffmpeg_not_found"


TERMINAL_CONVERT_STATES = frozenset(
    {
        ConvertState.SUCCESSFUL.value,
        ConvertState.FAILED.value,
    }
)

CLIPBOARD_AWARE_CONVERT_STATES = frozenset(
    {
        ConvertState.WAITING_FOR_CLIPBOARD_CONTENT.value,
        ConvertState.HAS_VALID_CLIPBOARD_CONTENT.value,
    }
)


def normalize_convert_state(value: str) -> str:
    candidate = str(value or "").strip().lower()
    try:
        return ConvertState(candidate).value
    except ValueError:
        return ConvertState.FAILED.value


@dataclass(frozen=True, slots=True)
class AudioFormat:
    id: str
    name: str
    extension: str
    codec: str


@dataclass(frozen=True, slots=True)
class ConversionResult:
    is_conversion_successful: bool
    converted_file_path: str = ""
    error: str = ""


@dataclass(slots=True)
class AppConfig:
    schema_version: int
    theme_mode: str
    audio_format: str
    audio_bitrate: int
    use_system_title_bar: bool
    check_for_updates: bool
    window_geometry: str = ""


@dataclass(slots=True)
class DependencyStatus:
    name: str
    installed: bool
    path: str = ""


@dataclass(slots=True)
class UpdateCheckResult:
    update_available: bool
    current_version: str
    latest_version: str = ""
    download_url: str = ""
    error: str = ""
