from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
import tarfile
import tempfile
import threading
import zipfile
from collections.abc import Callable
from pathlib import Path

import requests

from .paths import executable_name

FFMPEG_WINDOWS_URL = "https://www.gyan.dev/ffmpeg/builds/ffmpeg-release-essentials.zip"
FFMPEG_MACOS_URL = "https://evermeet.cx/ffmpeg/getrelease/zip"
FFPROBE_MACOS_URL = "https://evermeet.cx/ffmpeg/getrelease/ffprobe/zip"
FFMPEG_LINUX_URL = "https://johnvansickle.com/ffmpeg/releases/ffmpeg-release-amd64-static.tar.xz"
YOUTUBE_DL_RELEASE_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download"
DOWNLOAD_TIMEOUT_SECONDS = 20
UPDATE_TIMEOUT_SECONDS = 120

ProgressCallback = Callable[[int, str], None]
LogCallback = Callable[[str], None]


class DependencyDownloadCancelled(RuntimeError):
    pass


def _ensure_not_cancelled(cancel_token: threading.Event | None, dependency_name: str) -> None:
    if cancel_token is not None and cancel_token.is_set():
        raise DependencyDownloadCancelled(f"{dependency_name} download cancelled")


def _ffmpeg_packages() -> list[tuple[str, tuple[str, ...]]]:
    if os.name == "nt":
        return [(FFMPEG_WINDOWS_URL, ("ffmpeg.exe", "ffprobe.exe"))]
    if sys.platform == "darwin":
        return [(FFMPEG_MACOS_URL, ("ffmpeg",)), (FFPROBE_MACOS_URL, ("ffprobe",))]
    return [(FFMPEG_LINUX_URL, ("ffmpeg", "ffprobe"))]


def _youtube_dl_asset_name() -> str:
    if os.name == "nt":
        return "yt-dlp.exe"
    if sys.platform == "darwin":
        return "yt-dlp_macos"
    return "yt-dlp_linux"


def _find_binary_under(path: Path, binary_name: str) -> Path | None:
    for file in path.rglob(binary_name):
        if file.is_file():
            return file
    return None


def _mark_executable(path: Path) -> None:
    if os.name == "nt":
        return
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _stream_to_file(
    url: str,
    target: Path,
    *,
    dependency_name: str,
    cancel_token: threading.Event | None,
    progress_cb: ProgressCallback | None,
    progress_start: int,
    progress_span: int,
) -> None:
    with requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT_SECONDS) as response:
        response.raise_for_status()
        total = int(response.headers.get("content-length", "0") or 0)
        done = 0
        with target.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=1024 * 256):
                _ensure_not_cancelled(cancel_token, dependency_name)
                if not chunk:
                    continue
                handle.write(chunk)
                done += len(chunk)
                if progress_cb and total > 0:
                    percent = progress_start + min(progress_span, int((done / total) * progress_span))
                    progress_cb(percent, f"Downloading {dependency_name} ({percent}%)")


def _extract_archive(
    archive_path: Path,
    extract_dir: Path,
    *,
    dependency_name: str,
    cancel_token: threading.Event | None,
) -> None:
    if zipfile.is_zipfile(archive_path):
        with zipfile.ZipFile(archive_path, "r") as zipped:
            for member in zipped.infolist():
                _ensure_not_cancelled(cancel_token, dependency_name)
                zipped.extract(member, extract_dir)
        return
    with tarfile.open(archive_path, "r:*") as archive:
        for member in archive.getmembers():
            _ensure_not_cancelled(cancel_token, dependency_name)
            if not (member.isfile() or member.isdir()):
                continue
            archive.extract(member, extract_dir, filter="data")


class FFmpegDownloader:
    def download(
        self,
        target_folder: str | Path,
        cancel_token: threading.Event | None = None,
        *,
        progress_cb: ProgressCallback | None = None,
        log_cb: LogCallback | None = None,
    ) -> str:
        name = "ffmpeg"
        target_dir = Path(target_folder)
        target_dir.mkdir(parents=True, exist_ok=True)
        packages = _ffmpeg_packages()
        span = max(1, 90 // len(packages))
        if progress_cb:
            progress_cb(0, f"Preparing {name} download")

        installed_paths: list[Path] = []
        with tempfile.TemporaryDirectory(prefix=f"vitomu_{name}_") as temp_dir_raw:
            temp_dir = Path(temp_dir_raw)
            for index, (download_url, binary_names) in enumerate(packages):
                archive_path = temp_dir / f"{name}_{index}.archive"
                extract_dir = temp_dir / f"extract_{index}"
                extract_dir.mkdir(parents=True, exist_ok=True)
                if log_cb:
                    log_cb(f"Downloading {name} from {download_url}")
                _stream_to_file(
                    download_url,
                    archive_path,
                    dependency_name=name,
                    cancel_token=cancel_token,
                    progress_cb=progress_cb,
                    progress_start=index * span,
                    progress_span=span,
                )
                if log_cb:
                    log_cb(f"Extracting {archive_path.name}")
                _extract_archive(archive_path, extract_dir, dependency_name=name, cancel_token=cancel_token)

                for binary_name in binary_names:
                    _ensure_not_cancelled(cancel_token, name)
                    found = _find_binary_under(extract_dir, binary_name)
                    if not found:
                        raise FileNotFoundError(f"{binary_name} was not found in downloaded archive")
                    target_binary = target_dir / binary_name
                    shutil.copy2(found, target_binary)
                    _mark_executable(target_binary)
                    installed_paths.append(target_binary)
                    if log_cb:
                        log_cb(f"Installed {binary_name} to {target_binary}")

        if progress_cb:
            progress_cb(100, f"{name} installed")
        return str(installed_paths[0])


class YoutubeDlDownloader:
    def download(
        self,
        target_folder: str | Path,
        cancel_token: threading.Event | None = None,
        *,
        progress_cb: ProgressCallback | None = None,
        log_cb: LogCallback | None = None,
    ) -> str:
        name = "yt-dlp"
        target_dir = Path(target_folder)
        target_dir.mkdir(parents=True, exist_ok=True)
        download_url = f"{YOUTUBE_DL_RELEASE_URL}/{_youtube_dl_asset_name()}"
        target_binary = target_dir / executable_name(name)
        partial_binary = target_binary.with_name(f"{target_binary.name}.part")
        if progress_cb:
            progress_cb(0, f"Preparing {name} download")
        if log_cb:
            log_cb(f"Downloading {name} from {download_url}")
        try:
            _stream_to_file(
                download_url,
                partial_binary,
                dependency_name=name,
                cancel_token=cancel_token,
                progress_cb=progress_cb,
                progress_start=0,
                progress_span=99,
            )
            os.replace(str(partial_binary), str(target_binary))
        finally:
            partial_binary.unlink(missing_ok=True)
        _mark_executable(target_binary)
        if log_cb:
            log_cb(f"Installed {name} to {target_binary}")
        if progress_cb:
            progress_cb(100, f"{name} installed")
        return str(target_binary)


class YoutubeDlUpdater:
    def __init__(self, *, log_cb: LogCallback | None = None) -> None:
        self._log_cb = log_cb

    def update_youtube_dl(self, path: str | Path) -> bool:
        binary = Path(str(path or "")).expanduser()
        if not binary.is_file():
            self._log(f"yt-dlp update skipped: {binary} does not exist")
            return False
        creationflags = subprocess.CREATE_NO_WINDOW if os.name == "nt" else 0
        try:
            completed = subprocess.run(
                [str(binary), "-U"],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=UPDATE_TIMEOUT_SECONDS,
                check=False,
                creationflags=creationflags,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            self._log(f"yt-dlp update failed: {exc}")
            return False
        for line in str(completed.stdout or "").splitlines():
            if line.strip():
                self._log(line.strip())
        return completed.returncode == 0

    def _log(self, message: str) -> None:
        if self._log_cb:
            self._log_cb(message)
