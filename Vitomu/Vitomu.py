"""
Vitomu - Turns YouTube links on the clipboard into audio files

This program is licensed under the GNU General Public License v3.0
See the LICENSE file in the project root for the full license text.

SPDX-License-Identifier: GPL-3.0-or-later
"""
from __future__ import annotations

import sys

from PySide6.QtCore import QLockFile
from PySide6.QtWidgets import QApplication, QMessageBox

from vitomu.core.config import APP_NAME, APP_VERSION
from vitomu.core.paths import runtime_storage_dir

LOCK_FILENAME = "Vitomu.lock"


def acquire_instance_lock() -> QLockFile | None:
    """Returns the held lock, or None when another Vitomu is running."""
    lock = QLockFile(str(runtime_storage_dir() / LOCK_FILENAME))
    lock.setStaleLockTime(0)
    if not lock.tryLock(100):
        return None
    return lock


def main() -> int:
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationDisplayName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName(APP_NAME)

    try:
        instance_lock = acquire_instance_lock()
    except RuntimeError as exc:
        QMessageBox.critical(None, APP_NAME, str(exc))
        return 1
    if instance_lock is None:
        QMessageBox.information(None, APP_NAME, f"{APP_NAME} is already running.")
        return 0

    try:
        from vitomu.app_controller import AppController

        controller = AppController(app)
        controller.run()
        return app.exec()
    finally:
        instance_lock.unlock()


if __name__ == "__main__":
    raise SystemExit(main())
