from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

from .config import APP_NAME, LOG_FILENAME


@lru_cache(maxsize=1)
def app_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


@lru_cache(maxsize=1)
def bundle_dir() -> Path | None:
    base = getattr(sys, "_MEIPASS", None)
    if not base:
        return None
    try:
        return Path(str(base)).resolve()
    except OSError:
        return None


@lru_cache(maxsize=1)
def appdata_dir() -> Path:
    base = os.environ.get("LOCALAPPDATA")
    if base:
        return Path(base).resolve() / APP_NAME
    return Path.home() / f".{APP_NAME.lower()}"


@lru_cache(maxsize=1)
def runtime_storage_dir() -> Path:
    target = appdata_dir()
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(
            f"Unable to create application storage directory: {target}. "
            "Check folder permissions and available disk space."
        ) from exc
    return target


def dependencies_dir() -> Path:
    return runtime_storage_dir() / "Dependencies"


def music_output_dir() -> Path:
    return Path.home() / "Music" / APP_NAME


def log_file_path() -> Path:
    return runtime_storage_dir() / "logs" / LOG_FILENAME


def ensure_directory(path: str | Path) -> Path:
    target = Path(path).expanduser()
    target.mkdir(parents=True, exist_ok=True)
    return target


def file_name(path: str | Path) -> str:
    value = str(path or "").strip()
    if not value:
        return ""
    return Path(value).name


def executable_name(binary_name: str) -> str:
    if os.name == "nt" and not binary_name.lower().endswith(".exe"):
        return f"{binary_name}.exe"
    return binary_name


def resolve_app_asset(asset_name: str) -> Path | None:
    name = str(asset_name or "").strip()
    if not name:
        return None
    search_bases: list[Path] = []
    bundle_base = bundle_dir()
    if bundle_base is not None:
        search_bases.append(bundle_base)
    search_bases.append(app_dir())
    for base in search_bases:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None
