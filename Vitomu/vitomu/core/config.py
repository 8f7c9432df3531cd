from __future__ import annotations

import json
import os
from pathlib import Path

from .models import AppConfig, AudioFormat

APP_NAME = "Vitomu"
APP_VERSION = "3.1.0"
PROJECT_BASE_URL = "https://github.com/digimezzo/vitomu"
UPDATE_GITHUB_LATEST_URL = f"{PROJECT_BASE_URL}/releases/latest"

CONFIG_FILENAME = "Vitomu_config.json"
CONFIG_SCHEMA_VERSION = 1
LOG_FILENAME = "Vitomu.log"

THEME_VALUES = {"dark", "light"}

AUDIO_FORMATS: tuple[AudioFormat, ...] = (
    AudioFormat(id="mp3", name="MP3", extension=".mp3", codec="mp3"),
    AudioFormat(id="m4a", name="M4A", extension=".m4a", codec="m4a"),
    AudioFormat(id="aac", name="AAC", extension=".aac", codec="aac"),
    AudioFormat(id="flac", name="FLAC", extension=".flac", codec="flac"),
    AudioFormat(id="ogg", name="OGG", extension=".ogg", codec="vorbis"),
    AudioFormat(id="opus", name="OPUS", extension=".opus", codec="opus"),
    AudioFormat(id="wav", name="WAV", extension=".wav", codec="wav"),
)
AUDIO_BITRATES: tuple[int, ...] = (32, 64, 128, 192, 256, 320)
DEFAULT_AUDIO_FORMAT_ID = "mp3"
DEFAULT_AUDIO_BITRATE = 320

YOUTUBE_LINKS: tuple[str, ...] = (
    "youtube.com/watch?v=",
    "youtu.be/",
    "youtube.com/shorts/",
)

RESET_DELAY_MS = 3000
CLIPBOARD_POLL_INTERVAL_MS = 500


def _paths():
    from . import paths as paths_module

    return paths_module


def _coerce_bool(value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    return default


def _coerce_audio_format(value: object, *, default: str) -> str:
    candidate = str(value or "").strip().lower()
    if any(item.id == candidate for item in AUDIO_FORMATS):
        return candidate
    return default


def _coerce_audio_bitrate(value: object, *, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    if parsed in AUDIO_BITRATES:
        return parsed
    return default


def default_config() -> AppConfig:
    return AppConfig(
        schema_version=CONFIG_SCHEMA_VERSION,
        theme_mode="dark",
        audio_format=DEFAULT_AUDIO_FORMAT_ID,
        audio_bitrate=DEFAULT_AUDIO_BITRATE,
        use_system_title_bar=False,
        check_for_updates=True,
        window_geometry="",
    )


def _sanitize_payload(payload: dict[str, object]) -> AppConfig:
    defaults = default_config()

    theme_mode = str(payload.get("theme_mode", defaults.theme_mode) or "").strip().lower()
    if theme_mode not in THEME_VALUES:
        theme_mode = defaults.theme_mode

    return AppConfig(
        schema_version=CONFIG_SCHEMA_VERSION,
        theme_mode=theme_mode,
        audio_format=_coerce_audio_format(payload.get("audio_format"), default=defaults.audio_format),
        audio_bitrate=_coerce_audio_bitrate(payload.get("audio_bitrate"), default=defaults.audio_bitrate),
        use_system_title_bar=_coerce_bool(
            payload.get("use_system_title_bar"),
            default=defaults.use_system_title_bar,
        ),
        check_for_updates=_coerce_bool(
            payload.get("check_for_updates"),
            default=defaults.check_for_updates,
        ),
        window_geometry=str(payload.get("window_geometry", defaults.window_geometry) or ""),
    )


def config_path() -> Path:
    return _paths().runtime_storage_dir() / CONFIG_FILENAME


def _load_config_from_path(path: Path) -> AppConfig | None:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            return _sanitize_payload(raw)
    except (OSError, UnicodeError, json.JSONDecodeError, TypeError, ValueError):
        return None
    return None


def load_config() -> AppConfig:
    primary = config_path()
    if primary.exists():
        loaded = _load_config_from_path(primary)
        if loaded is not None:
            return loaded
    return default_config()


def config_to_dict(config: AppConfig) -> dict[str, object]:
    return {
        "schema_version": CONFIG_SCHEMA_VERSION,
        "theme_mode": config.theme_mode,
        "audio_format": str(config.audio_format or DEFAULT_AUDIO_FORMAT_ID),
        "audio_bitrate": int(config.audio_bitrate),
        "use_system_title_bar": bool(config.use_system_title_bar),
        "check_for_updates": bool(config.check_for_updates),
        "window_geometry": str(config.window_geometry or ""),
    }


def save_config(config: AppConfig) -> str | None:
    payload = config_to_dict(config)
    path = config_path()
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(str(tmp_path), str(path))
        return str(path)
    except (OSError, TypeError, ValueError):
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        return None
