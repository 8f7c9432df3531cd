from __future__ import annotations


_ERROR_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "rate_limit",
        ("429", "too many requests", "rate limit", "try again later"),
    ),
    (
        "network",
        (
            "timeout",
            "timed out",
            "connection reset",
            "connection refused",
            "network is unreachable",
            "getaddrinfo",
            "temporary failure in name resolution",
            "service unavailable",
        ),
    ),
    (
        "authentication",
        ("sign in", "login", "private video", "members-only", "confirm your age"),
    ),
    (
        "unavailable",
        ("video unavailable", "not available in your country", "has been removed"),
    ),
    (
        "unsupported",
        ("unsupported url", "unable to extract", "extractor error"),
    ),
    (
        "filesystem",
        ("permission denied", "access is denied", "no space left", "read-only file system"),
    ),
    (
        "dependency",
        ("ffmpeg", "ffprobe", "yt-dlp executable was not found"),
    ),
    (
        "cancelled",
        ("conversion cancelled",),
    ),
)

_FAILURE_HINTS: dict[str, str] = {
    "rate_limit": "YouTube is rate-limiting requests. Wait a bit and try again.",
    "network": "Network issue detected. Check your connection and try again.",
    "authentication": "This video requires signing in and cannot be converted.",
    "unavailable": "This video is unavailable or region restricted.",
    "unsupported": "yt-dlp could not handle this link. A yt-dlp update may fix it.",
    "filesystem": "Cannot write to the music folder. Check permissions and free space.",
    "dependency": "FFmpeg or yt-dlp is missing or broken. Restart Vitomu to re-check dependencies.",
    "cancelled": "The conversion was cancelled.",
}


def classify_conversion_error(message: str) -> str:
    text = str(message or "").strip().lower()
    if not text:
        return "unknown"
    for category, tokens in _ERROR_PATTERNS:
        if any(token in text for token in tokens):
            return category
    return "unknown"


def format_classified_error(message: str) -> str:
    raw = str(message or "").strip()
    category = classify_conversion_error(raw)
    short = raw.replace("\r", " ").replace("\n", " ")
    if len(short) > 280:
        short = f"{short[:279]}..."
    return f"{category.upper()}: {short}" if short else category.upper()


def failure_hint(category: str) -> str:
    normalized = str(category or "").strip().lower()
    return _FAILURE_HINTS.get(normalized, "Unknown failure. Check the link and try again.")
