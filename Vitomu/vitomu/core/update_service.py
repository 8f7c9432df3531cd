from __future__ import annotations

import re
from threading import Event
from urllib.request import Request, urlopen

from .config import APP_NAME, APP_VERSION, UPDATE_GITHUB_LATEST_URL
from .models import UpdateCheckResult

UPDATE_CHECK_TIMEOUT_SECONDS = 10.0
_STRICT_SEMVER_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")
_GITHUB_TAG_RE = re.compile(r"/tag/v?(\d+\.\d+\.\d+)")


def normalize_version(version_text: str) -> str:
    text = str(version_text or "").strip()
    if text.lower().startswith("v"):
        text = text[1:]
    return text


def parse_semver(value: str) -> tuple[int, int, int] | None:
    match = _STRICT_SEMVER_RE.search(str(value or ""))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def is_newer_version(latest_version: str, current_version: str) -> bool:
    latest_tuple = parse_semver(normalize_version(latest_version))
    current_tuple = parse_semver(normalize_version(current_version))
    if latest_tuple is None or current_tuple is None:
        return False
    return latest_tuple > current_tuple


def _ensure_not_stopped(stop_event: Event | None) -> None:
    if stop_event is not None and stop_event.is_set():
        raise InterruptedError("Update check stopped.")


def _resolve_latest_release_url(url: str, *, stop_event: Event | None = None) -> str:
    _ensure_not_stopped(stop_event)
    request = Request(
        url=url,
        headers={"User-Agent": f"{APP_NAME}/{APP_VERSION}"},
        method="HEAD",
    )
    with urlopen(request, timeout=UPDATE_CHECK_TIMEOUT_SECONDS) as response:
        final_url = str(response.geturl() or url)
    _ensure_not_stopped(stop_event)
    return final_url


def parse_release_tag(release_url: str) -> str:
    match = _GITHUB_TAG_RE.search(str(release_url or ""))
    if match is None:
        raise RuntimeError("latest release page did not contain a valid version tag")
    return match.group(1)


class UpdateService:
    def check_for_updates(
        self,
        current_version: str,
        *,
        stop_event: Event | None = None,
    ) -> UpdateCheckResult:
        current_normalized = normalize_version(current_version) or "0.0.0"
        if parse_semver(current_normalized) is None:
            current_normalized = "0.0.0"

        try:
            release_url = _resolve_latest_release_url(UPDATE_GITHUB_LATEST_URL, stop_event=stop_event)
            latest_version = parse_release_tag(release_url)
        except InterruptedError:
            raise
        except Exception as exc:
            raise RuntimeError(f"Unable to fetch the latest release from GitHub. {exc}") from exc

        return UpdateCheckResult(
            update_available=is_newer_version(latest_version, current_normalized),
            current_version=current_normalized,
            latest_version=latest_version,
            download_url=release_url,
            error="",
        )
