from __future__ import annotations

import importlib.util
import shutil
from pathlib import Path

from .models import DependencyStatus
from .paths import dependencies_dir, executable_name

FFMPEG_DEPENDENCY = "ffmpeg"
YOUTUBE_DL_DEPENDENCY = "yt-dlp"


class DependencyChecker:
    def __init__(
        self,
        name: str,
        binary_name: str,
        downloaded_dependency_folder: str | Path,
        *,
        module_name: str = "",
    ) -> None:
        self._name = str(name or "").strip().lower()
        self._binary_name = executable_name(str(binary_name or "").strip())
        self._downloaded_dependency_folder = Path(downloaded_dependency_folder)
        self._module_name = str(module_name or "").strip()

    @property
    def name(self) -> str:
        return self._name

    @property
    def binary_name(self) -> str:
        return self._binary_name

    @property
    def downloaded_dependency_folder(self) -> Path:
        return self._downloaded_dependency_folder

    def is_dependency_in_system_path(self) -> bool:
        if shutil.which(self._binary_name):
            return True
        if not self._module_name:
            return False
        try:
            return importlib.util.find_spec(self._module_name) is not None
        except (ImportError, ValueError):
            return False

    def get_path_of_downloaded_dependency(self) -> str:
        candidate = self._downloaded_dependency_folder / self._binary_name
        try:
            if candidate.is_file():
                return str(candidate)
        except OSError:
            return ""
        return ""

    def is_dependency_available(self) -> bool:
        if self.is_dependency_in_system_path():
            return True
        return bool(self.get_path_of_downloaded_dependency())

    def status(self) -> DependencyStatus:
        downloaded = self.get_path_of_downloaded_dependency()
        if downloaded:
            return DependencyStatus(name=self._name, installed=True, path=downloaded)
        system_path = shutil.which(self._binary_name) or ""
        return DependencyStatus(
            name=self._name,
            installed=self.is_dependency_in_system_path(),
            path=system_path,
        )


def create_ffmpeg_checker() -> DependencyChecker:
    return DependencyChecker(
        FFMPEG_DEPENDENCY,
        "ffmpeg",
        dependencies_dir() / FFMPEG_DEPENDENCY,
    )


def create_youtube_dl_checker() -> DependencyChecker:
    return DependencyChecker(
        YOUTUBE_DL_DEPENDENCY,
        "yt-dlp",
        dependencies_dir() / YOUTUBE_DL_DEPENDENCY,
        module_name="yt_dlp",
    )
