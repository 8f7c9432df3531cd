from __future__ import annotations

import importlib.util
import os
import re
import shutil
import subprocess
import sys
import threading
from collections.abc import Callable
from pathlib import Path

from .config import YOUTUBE_LINKS
from .models import AudioFormat, ConversionResult
from .paths import executable_name

_PROGRESS_RE = re.compile(r"^\[download\]\s+(?P<percent>\d+(?:\.\d+)?)%")
_ANSI_ESCAPE_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_NOT_CONVERTING_RE = re.compile(r"\[ExtractAudio\] Not converting audio (?P<path>.+?); file is already in target format")
_IMPORTANT_LOG_TOKENS = (
    "error:",
    "warning:",
    "has already been downloaded",
    "[extractaudio]",
)
OUTPUT_TEMPLATE = "%(title)s.%(ext)s"

ProgressCallback = Callable[[float], None]
LogCallback = Callable[[str], None]


def sanitize_error_text(value: object) -> str:
    text = str(value or "")
    if not text:
        return ""
    no_ansi = _ANSI_ESCAPE_RE.sub("", text)
    no_ctrl = _CONTROL_CHAR_RE.sub("", no_ansi)
    collapsed = no_ctrl.replace("\r", "\n")
    collapsed = re.sub(r"\n{3,}", "\n\n", collapsed)
    return collapsed.strip()


def parse_progress_percent(line: str) -> float | None:
    match = _PROGRESS_RE.search(str(line or "").strip())
    if not match:
        return None
    try:
        percent = float(match.group("percent"))
    except ValueError:
        return None
    return max(0.0, min(100.0, percent))


def parse_output_path(line: str) -> str:
    clean = str(line or "").strip()
    if "Destination:" in clean:
        return clean.split("Destination:", 1)[1].strip()
    match = _NOT_CONVERTING_RE.search(clean)
    if match:
        return match.group("path").strip()
    return ""


def _is_important_log_line(line: str) -> bool:
    lowered = str(line or "").strip().lower()
    if not lowered:
        return False
    return any(token in lowered for token in _IMPORTANT_LOG_TOKENS)


class VideoConverter:
    """Downloads a video with yt-dlp and extracts its audio track.

    Every failure (missing binary, spawn error, non-zero exit) comes back as
    an unsuccessful ``ConversionResult``; nothing is raised to the caller.
    """

    extra_arguments: tuple[str, ...] = ()

    @staticmethod
    def resolve_youtube_dl_prefix(youtube_dl_path_override: str = "") -> list[str]:
        override = str(youtube_dl_path_override or "").strip()
        if override:
            return [override]
        binary = shutil.which(executable_name("yt-dlp"))
        if binary:
            return [binary]
        if importlib.util.find_spec("yt_dlp") is not None:
            return [sys.executable, "-m", "yt_dlp"]
        raise FileNotFoundError("yt-dlp executable was not found. Download it or install yt-dlp in PATH.")

    def build_command(
        self,
        video_url: str,
        output_directory: str | Path,
        audio_format: AudioFormat,
        audio_bitrate: int,
        ffmpeg_path_override: str = "",
        youtube_dl_path_override: str = "",
    ) -> list[str]:
        output_template = str(Path(output_directory) / OUTPUT_TEMPLATE)
        command = [
            *self.resolve_youtube_dl_prefix(youtube_dl_path_override),
            "--newline",
            "--no-warnings",
            "--extract-audio",
            "--audio-format",
            audio_format.codec,
            "--audio-quality",
            f"{int(audio_bitrate)}K",
            "-o",
            output_template,
            *self.extra_arguments,
        ]
        ffmpeg_override = str(ffmpeg_path_override or "").strip()
        if ffmpeg_override:
            command.extend(["--ffmpeg-location", ffmpeg_override])
        command.append(str(video_url or "").strip())
        return command

    @staticmethod
    def _kill_process(process: subprocess.Popen[str]) -> None:
        if process.poll() is not None:
            return
        try:
            if os.name == "nt":
                subprocess.run(
                    ["taskkill", "/F", "/T", "/PID", str(process.pid)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
            else:
                process.terminate()
                process.wait(timeout=1.0)
        except (OSError, subprocess.SubprocessError):
            process.kill()

    def convert(
        self,
        video_url: str,
        output_directory: str | Path,
        audio_format: AudioFormat,
        audio_bitrate: int,
        ffmpeg_path_override: str = "",
        youtube_dl_path_override: str = "",
        progress_cb: ProgressCallback | None = None,
        *,
        log_cb: LogCallback | None = None,
        cancel_token: threading.Event | None = None,
    ) -> ConversionResult:
        try:
            command = self.build_command(
                video_url,
                output_directory,
                audio_format,
                audio_bitrate,
                ffmpeg_path_override,
                youtube_dl_path_override,
            )
        except FileNotFoundError as exc:
            return ConversionResult(is_conversion_successful=False, error=str(exc))

        try:
            creationflags = subprocess.CREATE_NO_WINDOW if os.name == "nt" else 0
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                creationflags=creationflags,
            )
        except OSError as exc:
            return ConversionResult(is_conversion_successful=False, error=sanitize_error_text(exc))

        output_path = ""
        last_line = ""
        try:
            stream = process.stdout
            if stream is None:
                return ConversionResult(is_conversion_successful=False, error="No output stream")

            for line in iter(stream.readline, ""):
                if cancel_token is not None and cancel_token.is_set():
                    self._kill_process(process)
                    return ConversionResult(
                        is_conversion_successful=False,
                        converted_file_path=output_path,
                        error="Conversion cancelled",
                    )
                clean = sanitize_error_text(line)
                if not clean:
                    continue
                last_line = clean
                if log_cb and _is_important_log_line(clean):
                    log_cb(clean)
                candidate_path = parse_output_path(clean)
                if candidate_path:
                    output_path = candidate_path
                percent = parse_progress_percent(clean)
                if percent is not None and progress_cb:
                    progress_cb(percent)

            return_code = process.wait()
        finally:
            if process.stdout:
                process.stdout.close()

        if return_code != 0:
            return ConversionResult(
                is_conversion_successful=False,
                converted_file_path=output_path,
                error=last_line or f"yt-dlp exited with {return_code}",
            )
        if progress_cb:
            progress_cb(100.0)
        return ConversionResult(is_conversion_successful=True, converted_file_path=output_path)


class YoutubeVideoConverter(VideoConverter):
    extra_arguments = ("--no-playlist",)


def is_youtube_url(video_url: str) -> bool:
    value = str(video_url or "")
    return any(link in value for link in YOUTUBE_LINKS)


def create_video_converter(video_url: str) -> VideoConverter:
    if is_youtube_url(video_url):
        return YoutubeVideoConverter()
    return VideoConverter()
