from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

from .config import AUDIO_BITRATES, AUDIO_FORMATS, THEME_VALUES, load_config, save_config
from .models import AppConfig

SaveCallback = Callable[[AppConfig], "str | None"]
SaveFailureCallback = Callable[[str], None]


class Settings:
    """Persisted user settings.

    Reads go through properties. Every write goes through a ``set_*`` call
    that updates the in-memory config and saves it in the same step.
    """

    def __init__(self, config: AppConfig | None = None, *, save: SaveCallback | None = None) -> None:
        self._config = config if config is not None else load_config()
        self._save = save or save_config
        self._on_save_failed: SaveFailureCallback | None = None

    def set_save_failure_handler(self, callback: SaveFailureCallback | None) -> None:
        """Called with a message whenever a write could not be saved."""
        self._on_save_failed = callback

    @property
    def config(self) -> AppConfig:
        return replace(self._config)

    @property
    def audio_format(self) -> str:
        return self._config.audio_format

    @property
    def audio_bitrate(self) -> int:
        return self._config.audio_bitrate

    @property
    def use_system_title_bar(self) -> bool:
        return self._config.use_system_title_bar

    @property
    def check_for_updates(self) -> bool:
        return self._config.check_for_updates

    @property
    def theme_mode(self) -> str:
        return self._config.theme_mode

    @property
    def window_geometry(self) -> str:
        return self._config.window_geometry

    def set_audio_format(self, format_id: str) -> None:
        value = str(format_id or "").strip().lower()
        if not any(item.id == value for item in AUDIO_FORMATS):
            raise ValueError(f"Unsupported audio format: {format_id}")
        self._write(audio_format=value)

    def set_audio_bitrate(self, bitrate: int) -> None:
        value = int(bitrate)
        if value not in AUDIO_BITRATES:
            raise ValueError(f"Unsupported audio bitrate: {bitrate}")
        self._write(audio_bitrate=value)

    def set_use_system_title_bar(self, enabled: bool) -> None:
        self._write(use_system_title_bar=bool(enabled))

    def set_check_for_updates(self, enabled: bool) -> None:
        self._write(check_for_updates=bool(enabled))

    def set_theme_mode(self, mode: str) -> None:
        value = str(mode or "").strip().lower()
        if value not in THEME_VALUES:
            value = "dark"
        self._write(theme_mode=value)

    def set_window_geometry(self, geometry: str) -> None:
        self._write(window_geometry=str(geometry or ""))

    def _write(self, **changes: object) -> None:
        updated = replace(self._config, **changes)
        self._config = updated
        if self._save(updated) is None and self._on_save_failed is not None:
            self._on_save_failed("Settings could not be saved; changes last until Vitomu closes.")
