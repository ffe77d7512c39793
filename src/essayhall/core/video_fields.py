from __future__ import annotations

import math
import re
from typing import Iterable, Literal
from urllib.parse import parse_qs, urlparse

DurationBucket = Literal["short", "medium", "long", "unknown"]

SHORT_LINK_HOSTS: tuple[str, ...] = ("youtu.be",)
SHORT_BUCKET_LIMIT_SECONDS = 15 * 60
LONG_BUCKET_START_SECONDS = 45 * 60

_SHORTS_PATH_RE = re.compile(r"/shorts/([A-Za-z0-9_-]{6,})")
_DIGITS_RE = re.compile(r"^\d+$")
_LOOSE_NUMBER_STRIP_RE = re.compile(r"[,\s]")
_COMPACT_SUFFIXES = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def extract_video_id(url: str | None, short_link_hosts: Iterable[str] = SHORT_LINK_HOSTS) -> str | None:
    """Pull the platform video identifier out of a watch, short-link or shorts URL.

    Returns None when the URL cannot be parsed or carries no identifier; callers
    fall back to the literal URL for identity in that case.
    """
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None

    v_values = parse_qs(parsed.query).get("v")
    if v_values and v_values[0].strip():
        return v_values[0].strip()

    host = (parsed.hostname or "").lower()
    if any(host == h or host.endswith("." + h) for h in short_link_hosts):
        first_segment = parsed.path.lstrip("/").split("/", 1)[0].strip()
        return first_segment or None

    shorts_match = _SHORTS_PATH_RE.search(parsed.path)
    if shorts_match:
        return shorts_match.group(1)

    return None


def parse_duration_to_seconds(text: str | None) -> int | None:
    """Parse ``MM:SS`` or ``HH:MM:SS`` into seconds.

    Anything else, including an empty string or a non-numeric segment, is None.
    None and 0 mean different things downstream and must not be conflated.
    """
    if text is None:
        return None
    stripped = str(text).strip()
    if not stripped:
        return None

    parts = [part.strip() for part in stripped.split(":")]
    if any(not _DIGITS_RE.match(part) for part in parts):
        return None

    nums = [int(part) for part in parts]
    if len(nums) == 2:
        minutes, seconds = nums
        return minutes * 60 + seconds
    if len(nums) == 3:
        hours, minutes, seconds = nums
        return hours * 3600 + minutes * 60 + seconds
    return None


def normalize_topic_categories(topic: str | None) -> list[str]:
    # Source values look like "Cinema & Live Performance, Internet & Pop Culture".
    if not topic:
        return []
    return [part.strip() for part in topic.split(",") if part.strip()]


def parse_number_loose(value: str | int | float | None) -> float | None:
    """Tolerant count parser: ``"1,234 "`` -> 1234.0. Non-finite or junk -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    cleaned = _LOOSE_NUMBER_STRIP_RE.sub("", str(value))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def duration_bucket(seconds: int | None) -> DurationBucket:
    if seconds is None:
        return "unknown"
    if seconds < SHORT_BUCKET_LIMIT_SECONDS:
        return "short"
    if seconds < LONG_BUCKET_START_SECONDS:
        return "medium"
    return "long"


def format_duration(seconds: int | None, fallback: str | None = None) -> str:
    if seconds is None:
        return fallback or "—"
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_compact_number(value: float | None) -> str:
    if value is None:
        return "—"
    magnitude = abs(value)
    for index, (threshold, suffix) in enumerate(_COMPACT_SUFFIXES):
        if magnitude < threshold:
            continue
        scaled = round(value / threshold, 1)
        # 999_990 rounds to 1000.0K; promote to the next suffix instead.
        if abs(scaled) >= 1000 and index > 0:
            threshold, suffix = _COMPACT_SUFFIXES[index - 1]
            scaled = round(value / threshold, 1)
        return f"{_trim_decimal(scaled)}{suffix}"
    return _trim_decimal(round(value, 1))


def unique_sorted(values: Iterable[str]) -> list[str]:
    return sorted(set(values), key=lambda v: (v.casefold(), v))


def _trim_decimal(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"
