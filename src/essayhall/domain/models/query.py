from __future__ import annotations

from dataclasses import dataclass, field

from essayhall.core.errors import QueryError
from essayhall.domain.models.video import Video

LIST_MODES: tuple[str, ...] = ("discover", "favorites", "watch_later", "watched")
SORT_MODES: tuple[str, ...] = ("newest", "oldest", "most_views", "fewest_views", "longest", "shortest")
DURATION_FILTERS: tuple[str, ...] = ("short", "medium", "long")

# List mode -> flag that must be set for an entity to stay in the list.
MODE_FLAG_KEYS: dict[str, str] = {
    "favorites": "favorite",
    "watch_later": "watch_later",
    "watched": "watched",
}

DEFAULT_PAGE_SIZE = 60


@dataclass(frozen=True, slots=True)
class QuerySpec:
    text: str = ""
    topics: frozenset[str] = field(default_factory=frozenset)
    durations: frozenset[str] = field(default_factory=frozenset)
    owner: str | None = None
    mode: str = "discover"
    sort: str | None = "newest"
    shuffle_seed: int | None = None
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.mode not in LIST_MODES:
            raise QueryError(f"Unsupported list mode: {self.mode}")
        if self.sort is not None and self.sort not in SORT_MODES:
            raise QueryError(f"Unsupported sort mode: {self.sort}")
        unknown = set(self.durations) - set(DURATION_FILTERS)
        if unknown:
            raise QueryError(f"Unsupported duration filter(s): {', '.join(sorted(unknown))}")
        if self.page_size <= 0:
            raise QueryError("page_size must be positive")


@dataclass(slots=True)
class QueryResult:
    items: list[Video]
    total: int
    list_total: int


@dataclass(frozen=True, slots=True)
class TopicCount:
    topic: str
    count: int
