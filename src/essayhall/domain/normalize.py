from __future__ import annotations

from typing import Mapping

from essayhall.core.video_fields import (
    extract_video_id,
    normalize_topic_categories,
    parse_duration_to_seconds,
)
from essayhall.domain.models.video import RawRecord, Video

# Source headers are matched case-insensitively; the archive ships "Topic", "Summary", "Format".
_RAW_FIELDS: tuple[str, ...] = (
    "url",
    "title",
    "owner",
    "owner_url",
    "duration",
    "published_date",
    "view_count",
    "subscription_count",
    "tags",
    "gpt_tags",
    "summary",
    "format",
    "topic",
)


def raw_record_from_row(row: Mapping[str, object]) -> RawRecord | None:
    """Build a RawRecord from a parsed CSV row, or None if url or title is missing."""
    lowered = {str(k).strip().lower(): v for k, v in row.items() if k is not None}
    values = {name: _opt_str(lowered.get(name)) for name in _RAW_FIELDS}
    if not values["url"] or not values["title"]:
        return None
    return RawRecord(**values)


def normalize_record(raw: RawRecord) -> Video:
    video_id = extract_video_id(raw.url)
    return Video(
        id=video_id or raw.url,
        url=raw.url,
        title=raw.title,
        video_id=video_id,
        duration_seconds=parse_duration_to_seconds(raw.duration),
        topics=tuple(normalize_topic_categories(raw.topic)),
        owner=raw.owner,
        owner_url=raw.owner_url,
        duration=raw.duration,
        published_date=raw.published_date,
        view_count=raw.view_count,
        subscription_count=raw.subscription_count,
        tags=raw.tags,
        gpt_tags=raw.gpt_tags,
        summary=raw.summary,
        format=raw.format,
        topic=raw.topic,
    )


def _opt_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None
