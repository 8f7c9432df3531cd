from __future__ import annotations

import os
import subprocess
import sys
import webbrowser
from pathlib import Path


def _existing_path(path_value: str | Path) -> Path:
    raw = str(path_value or "").strip()
    if not raw:
        raise FileNotFoundError("No converted file is available yet.")
    path = Path(raw).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path


def open_in_default_application(path_value: str | Path) -> None:
    path = _existing_path(path_value)
    if os.name == "nt":
        os.startfile(str(path))
        return
    if sys.platform == "darwin":
        subprocess.Popen(["open", str(path)])
        return
    webbrowser.open(path.as_uri())


def show_in_folder(path_value: str | Path) -> None:
    path = _existing_path(path_value)
    if os.name == "nt":
        subprocess.Popen(["explorer", f"/select,{path}"])
        return
    if sys.platform == "darwin":
        subprocess.Popen(["open", "-R", str(path)])
        return
    folder = path if path.is_dir() else path.parent
    webbrowser.open(folder.as_uri())
