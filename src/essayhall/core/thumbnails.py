from __future__ import annotations

from typing import Literal

ThumbnailQuality = Literal["default", "mq", "hq", "maxres"]

THUMBNAIL_HOST = "https://i.ytimg.com/vi"
THUMBNAIL_FILES: dict[str, str] = {
    "default": "default.jpg",
    "mq": "mqdefault.jpg",
    "hq": "hqdefault.jpg",
    "maxres": "maxresdefault.jpg",
}


def thumbnail_url(video_id: str | None, quality: ThumbnailQuality = "default") -> str | None:
    if not video_id:
        return None
    try:
        filename = THUMBNAIL_FILES[quality]
    except KeyError as exc:
        raise ValueError(f"Unknown thumbnail quality: {quality}") from exc
    return f"{THUMBNAIL_HOST}/{video_id}/{filename}"


def thumbnail_urls(video_id: str | None) -> dict[str, str] | None:
    if not video_id:
        return None
    return {quality: f"{THUMBNAIL_HOST}/{video_id}/{filename}" for quality, filename in THUMBNAIL_FILES.items()}
