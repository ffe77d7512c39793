from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from typing import Mapping, Sequence

from rapidfuzz import fuzz, utils

from essayhall.core.video_fields import duration_bucket, parse_number_loose, unique_sorted
from essayhall.domain.models.flags import VideoFlags
from essayhall.domain.models.query import MODE_FLAG_KEYS, QueryResult, QuerySpec, TopicCount
from essayhall.domain.models.video import Video

# Field weights sum to 1.0; title dominates, summary barely counts.
SEARCH_FIELD_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("title", 0.45),
    ("owner", 0.18),
    ("topic", 0.20),
    ("tags", 0.08),
    ("gpt_tags", 0.05),
    ("summary", 0.04),
)
SEARCH_THRESHOLD = 0.35
MIN_FIELD_SCORE = (1.0 - SEARCH_THRESHOLD) * 100.0


@dataclass(frozen=True, slots=True)
class SearchHit:
    video: Video
    score: float


class FuzzySearcher:
    """Weighted multi-field fuzzy matcher over a fixed sequence of videos.

    A video matches when at least one field scores at or above MIN_FIELD_SCORE.
    Field score is the better of ``partial_ratio`` (match anywhere in the field)
    and ``token_set_ratio`` (word order does not matter). Relevance is the
    weighted sum of the matching fields' scores.
    """

    def __init__(self, videos: Sequence[Video]) -> None:
        self.videos = list(videos)
        self._fields: list[list[tuple[float, str]]] = [self._prepare(video) for video in self.videos]

    @staticmethod
    def _prepare(video: Video) -> list[tuple[float, str]]:
        prepared: list[tuple[float, str]] = []
        for name, weight in SEARCH_FIELD_WEIGHTS:
            value = getattr(video, name)
            if name == "topic" and not value and video.topics:
                value = ", ".join(video.topics)
            if not value:
                continue
            processed = utils.default_process(value)
            if processed:
                prepared.append((weight, processed))
        return prepared

    def search(self, query: str) -> list[SearchHit]:
        needle = utils.default_process(query.strip())
        if not needle:
            return []

        hits: list[SearchHit] = []
        for video, fields in zip(self.videos, self._fields):
            score = 0.0
            matched = False
            for weight, text in fields:
                field_score = max(fuzz.partial_ratio(needle, text), fuzz.token_set_ratio(needle, text))
                if field_score >= MIN_FIELD_SCORE:
                    matched = True
                    score += weight * field_score
            if matched:
                hits.append(SearchHit(video=video, score=score))

        # Stable: equal scores keep catalog order.
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits


def restrict_to_list(videos: Sequence[Video], flags: Mapping[str, VideoFlags], mode: str) -> list[Video]:
    if mode == "discover":
        return list(videos)
    key = MODE_FLAG_KEYS[mode]
    out: list[Video] = []
    for video in videos:
        video_flags = flags.get(video.id)
        if video_flags is not None and video_flags.is_set(key):
            out.append(video)
    return out


def matches_filters(video: Video, spec: QuerySpec) -> bool:
    if spec.topics and spec.topics.isdisjoint(video.topics):
        return False
    if spec.durations:
        bucket = duration_bucket(video.duration_seconds)
        if bucket == "unknown" or bucket not in spec.durations:
            return False
    if spec.owner is not None and video.owner != spec.owner:
        return False
    return True


def sort_videos(videos: Sequence[Video], sort: str | None) -> list[Video]:
    if sort is None:
        return list(videos)
    if sort in {"newest", "oldest"}:
        # Dates are ISO strings, so lexical order is date order. Missing dates go last either way.
        dated = [v for v in videos if v.published_date]
        undated = [v for v in videos if not v.published_date]
        dated.sort(key=lambda v: v.published_date or "", reverse=sort == "newest")
        return dated + undated
    if sort in {"most_views", "fewest_views"}:
        return sorted(videos, key=_views_or_zero, reverse=sort == "most_views")
    if sort in {"longest", "shortest"}:
        return sorted(videos, key=lambda v: v.duration_seconds or 0, reverse=sort == "longest")
    raise ValueError(f"Unsupported sort mode: {sort}")


def shuffle_videos(videos: Sequence[Video], seed: int) -> list[Video]:
    shuffled = list(videos)
    random.Random(seed).shuffle(shuffled)
    return shuffled


def topic_counts(videos: Sequence[Video]) -> list[TopicCount]:
    """Topic occurrence counts across every video, most common first, then by name."""
    counter: Counter[str] = Counter()
    for video in videos:
        counter.update(set(video.topics))
    return [TopicCount(topic=t, count=n) for t, n in sorted(counter.items(), key=lambda item: (-item[1], item[0]))]


def _views_or_zero(video: Video) -> float:
    return parse_number_loose(video.view_count) or 0.0


class QueryService:
    """Runs list restriction, search, filters, sort, shuffle and pagination over an in-memory catalog."""

    def __init__(self, videos: Sequence[Video]) -> None:
        self.videos = list(videos)
        # (base ids, searcher) is replaced as one reference; a key always travels with its own searcher.
        self._searcher_entry: tuple[tuple[str, ...], FuzzySearcher] | None = None

    def run(
        self,
        flags: Mapping[str, VideoFlags],
        spec: QuerySpec,
        visible_count: int | None = None,
    ) -> QueryResult:
        base = restrict_to_list(self.videos, flags, spec.mode)

        text = spec.text.strip()
        if text:
            searched = [hit.video for hit in self._searcher_for(base).search(text)]
        else:
            searched = base

        filtered = [video for video in searched if matches_filters(video, spec)]
        ordered = sort_videos(filtered, spec.sort)
        if spec.shuffle_seed is not None:
            ordered = shuffle_videos(ordered, spec.shuffle_seed)

        limit = spec.page_size if visible_count is None else max(0, visible_count)
        return QueryResult(items=ordered[:limit], total=len(ordered), list_total=len(base))

    def topic_counts(self) -> list[TopicCount]:
        return topic_counts(self.videos)

    def owners(self) -> list[str]:
        return unique_sorted(video.owner for video in self.videos if video.owner)

    def get(self, video_id: str) -> Video | None:
        for video in self.videos:
            if video.id == video_id:
                return video
        return None

    def _searcher_for(self, base: list[Video]) -> FuzzySearcher:
        key = tuple(video.id for video in base)
        entry = self._searcher_entry
        if entry is not None and entry[0] == key:
            return entry[1]
        searcher = FuzzySearcher(base)
        self._searcher_entry = (key, searcher)
        return searcher
