from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class RawRecord:
    """One row of the source table. Nothing here is validated or unique."""

    url: str
    title: str
    owner: str | None = None
    owner_url: str | None = None
    duration: str | None = None
    published_date: str | None = None
    view_count: str | None = None
    subscription_count: str | None = None
    tags: str | None = None
    gpt_tags: str | None = None
    summary: str | None = None
    format: str | None = None
    topic: str | None = None


@dataclass(frozen=True, slots=True)
class Video:
    id: str
    url: str
    title: str
    video_id: str | None
    duration_seconds: int | None
    topics: tuple[str, ...] = field(default_factory=tuple)
    owner: str | None = None
    owner_url: str | None = None
    duration: str | None = None
    published_date: str | None = None
    view_count: str | None = None
    subscription_count: str | None = None
    tags: str | None = None
    gpt_tags: str | None = None
    summary: str | None = None
    format: str | None = None
    topic: str | None = None
