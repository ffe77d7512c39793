from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Iterable

from essayhall.core.errors import CatalogStoreError
from essayhall.domain.models.video import Video
from essayhall.infrastructure.db.sqlite import get_connection

FINGERPRINT_KEY = "archive_fingerprint"

_UPSERT_SQL = """
INSERT INTO videos (
    id,
    url,
    title,
    video_id,
    duration_seconds,
    topics_json,
    owner,
    owner_url,
    duration,
    published_date,
    view_count,
    subscription_count,
    tags,
    gpt_tags,
    summary,
    format,
    topic
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    url = excluded.url,
    title = excluded.title,
    video_id = excluded.video_id,
    duration_seconds = excluded.duration_seconds,
    topics_json = excluded.topics_json,
    owner = excluded.owner,
    owner_url = excluded.owner_url,
    duration = excluded.duration,
    published_date = excluded.published_date,
    view_count = excluded.view_count,
    subscription_count = excluded.subscription_count,
    tags = excluded.tags,
    gpt_tags = excluded.gpt_tags,
    summary = excluded.summary,
    format = excluded.format,
    topic = excluded.topic
"""


class VideoRepo:
    """Catalog store: videos keyed by id, rows kept in first-insert order."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def get_all(self) -> list[Video]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM videos ORDER BY seq ASC").fetchall()
        return [self._to_video(row) for row in rows]

    def get(self, video_id: str) -> Video | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT * FROM videos WHERE id = ?", (video_id,)).fetchone()
        return self._to_video(row) if row else None

    def count(self) -> int:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM videos").fetchone()
        return int(row["n"])

    def bulk_upsert(self, videos: Iterable[Video]) -> int:
        params = [self._to_params(video) for video in videos]
        if not params:
            return 0
        conn = get_connection(self.db_path)
        try:
            with conn:
                conn.executemany(_UPSERT_SQL, params)
        except sqlite3.Error as exc:
            raise CatalogStoreError(f"Failed to upsert {len(params)} videos: {exc}") from exc
        finally:
            conn.close()
        return len(params)

    def clear(self) -> None:
        with get_connection(self.db_path) as conn:
            self.delete_all(conn)
            conn.commit()

    def get_fingerprint(self) -> str | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT value FROM catalog_meta WHERE key = ?", (FINGERPRINT_KEY,)).fetchone()
        return row["value"] if row else None

    def set_fingerprint(self, fingerprint: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO catalog_meta (key, value) VALUES (?, ?)",
                (FINGERPRINT_KEY, fingerprint),
            )
            conn.commit()

    @staticmethod
    def delete_all(conn: sqlite3.Connection) -> None:
        # The fingerprint is cleared together with the rows it describes.
        conn.execute("DELETE FROM videos")
        conn.execute("DELETE FROM catalog_meta WHERE key = ?", (FINGERPRINT_KEY,))

    @staticmethod
    def _to_params(video: Video) -> tuple[object, ...]:
        return (
            video.id,
            video.url,
            video.title,
            video.video_id,
            video.duration_seconds,
            json.dumps(list(video.topics), ensure_ascii=False),
            video.owner,
            video.owner_url,
            video.duration,
            video.published_date,
            video.view_count,
            video.subscription_count,
            video.tags,
            video.gpt_tags,
            video.summary,
            video.format,
            video.topic,
        )

    @staticmethod
    def _to_video(row) -> Video:
        return Video(
            id=row["id"],
            url=row["url"],
            title=row["title"],
            video_id=row["video_id"],
            duration_seconds=row["duration_seconds"],
            topics=tuple(json.loads(row["topics_json"] or "[]")),
            owner=row["owner"],
            owner_url=row["owner_url"],
            duration=row["duration"],
            published_date=row["published_date"],
            view_count=row["view_count"],
            subscription_count=row["subscription_count"],
            tags=row["tags"],
            gpt_tags=row["gpt_tags"],
            summary=row["summary"],
            format=row["format"],
            topic=row["topic"],
        )
