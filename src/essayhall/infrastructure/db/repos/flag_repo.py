from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable

from essayhall.core.errors import FlagError
from essayhall.domain.models.flags import VideoFlags
from essayhall.infrastructure.db.sqlite import get_connection

_PUT_SQL = """
INSERT OR REPLACE INTO video_flags (id, watched, watch_later, favorite, updated_at)
VALUES (?, ?, ?, ?, ?)
"""


class FlagRepo:
    """Annotation store: one whole-row flag record per video id."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def get_all(self) -> list[VideoFlags]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM video_flags ORDER BY updated_at DESC, id ASC").fetchall()
        return [self._to_flags(row) for row in rows]

    def get(self, video_id: str) -> VideoFlags | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT * FROM video_flags WHERE id = ?", (video_id,)).fetchone()
        return self._to_flags(row) if row else None

    def count(self) -> int:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM video_flags").fetchone()
        return int(row["n"])

    def put(self, flags: VideoFlags) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(_PUT_SQL, self._to_params(flags))
            conn.commit()

    def bulk_upsert(self, flags: Iterable[VideoFlags]) -> int:
        params = [self._to_params(f) for f in flags]
        if not params:
            return 0
        conn = get_connection(self.db_path)
        try:
            with conn:
                conn.executemany(_PUT_SQL, params)
        except sqlite3.Error as exc:
            raise FlagError(f"Failed to upsert {len(params)} flag rows: {exc}") from exc
        finally:
            conn.close()
        return len(params)

    def clear(self) -> None:
        with get_connection(self.db_path) as conn:
            self.delete_all(conn)
            conn.commit()

    @staticmethod
    def delete_all(conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM video_flags")

    @staticmethod
    def _to_params(flags: VideoFlags) -> tuple[object, ...]:
        return (
            flags.id,
            int(flags.watched),
            int(flags.watch_later),
            int(flags.favorite),
            flags.updated_at,
        )

    @staticmethod
    def _to_flags(row) -> VideoFlags:
        return VideoFlags(
            id=row["id"],
            watched=bool(row["watched"]),
            watch_later=bool(row["watch_later"]),
            favorite=bool(row["favorite"]),
            updated_at=row["updated_at"],
        )
