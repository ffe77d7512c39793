from __future__ import annotations

from dataclasses import dataclass

FLAG_KEYS: tuple[str, ...] = ("watched", "watch_later", "favorite")


@dataclass(frozen=True, slots=True)
class VideoFlags:
    id: str
    updated_at: str
    watched: bool = False
    watch_later: bool = False
    favorite: bool = False

    def is_set(self, key: str) -> bool:
        return bool(getattr(self, key))


@dataclass(slots=True)
class FlagCounts:
    favorites: int = 0
    watch_later: int = 0
    watched: int = 0
