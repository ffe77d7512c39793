from __future__ import annotations

import threading
from dataclasses import replace

from essayhall.core.errors import FlagError
from essayhall.core.time import now_utc_iso
from essayhall.domain.models.flags import FLAG_KEYS, FlagCounts, VideoFlags
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo


class FlagService:
    """Write-through cache of per-video flags.

    The durable store is the source of truth. It is read once to hydrate the
    in-memory map; every mutation writes the durable row first and only then
    updates the map, so queries never go back to the database. The map is
    shared across request threads, so reads and read-modify-write cycles hold
    ``_lock``.
    """

    def __init__(self, flag_repo: FlagRepo) -> None:
        self.flag_repo = flag_repo
        self._lock = threading.Lock()
        self._flags: dict[str, VideoFlags] = {}
        self.reload()

    def reload(self) -> None:
        flags = {row.id: row for row in self.flag_repo.get_all()}
        with self._lock:
            self._flags = flags

    def get(self, video_id: str) -> VideoFlags | None:
        with self._lock:
            return self._flags.get(video_id)

    def snapshot(self) -> dict[str, VideoFlags]:
        with self._lock:
            return dict(self._flags)

    def set_flag(self, video_id: str, key: str, value: bool) -> VideoFlags:
        _check_key(key)
        if not video_id:
            raise FlagError("Flag target id is required")
        with self._lock:
            return self._write(video_id, key, bool(value))

    def toggle_flag(self, video_id: str, key: str) -> VideoFlags:
        _check_key(key)
        if not video_id:
            raise FlagError("Flag target id is required")
        with self._lock:
            existing = self._flags.get(video_id)
            current = existing.is_set(key) if existing else False
            return self._write(video_id, key, not current)

    def clear_all(self) -> None:
        with self._lock:
            self.flag_repo.clear()
            self._flags = {}

    def counts(self) -> FlagCounts:
        counts = FlagCounts()
        for flags in self.snapshot().values():
            if flags.favorite:
                counts.favorites += 1
            if flags.watch_later:
                counts.watch_later += 1
            if flags.watched:
                counts.watched += 1
        return counts

    def _write(self, video_id: str, key: str, value: bool) -> VideoFlags:
        existing = self._flags.get(video_id) or VideoFlags(id=video_id, updated_at="")
        updated = replace(existing, updated_at=now_utc_iso(), **{key: value})
        self.flag_repo.put(updated)
        self._flags[video_id] = updated
        return updated


def _check_key(key: str) -> None:
    if key not in FLAG_KEYS:
        raise FlagError(f"Unsupported flag: {key}. Expected one of: {', '.join(FLAG_KEYS)}")
