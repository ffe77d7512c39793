from __future__ import annotations

import time
from dataclasses import replace
from typing import Callable

from essayhall.application.services.flag_service import FlagService
from essayhall.application.services.query_service import QueryService
from essayhall.core.debounce import DEFAULT_DEBOUNCE_SECONDS, Debouncer
from essayhall.domain.models.flags import VideoFlags
from essayhall.domain.models.query import DEFAULT_PAGE_SIZE, DURATION_FILTERS, QueryResult, QuerySpec


class PageWindow:
    """How many results are visible. Grows by ``increment``; resets when the query changes."""

    def __init__(self, increment: int = DEFAULT_PAGE_SIZE) -> None:
        if increment <= 0:
            raise ValueError("increment must be positive")
        self.increment = increment
        self.visible_count = increment
        self._spec: QuerySpec | None = None

    def sync(self, spec: QuerySpec) -> bool:
        if spec == self._spec:
            return False
        self._spec = spec
        self.visible_count = self.increment
        return True

    def show_more(self) -> int:
        self.visible_count += self.increment
        return self.visible_count


class ExplorerSession:
    """Interactive browse state: debounced search text, filters, sort, list mode and paging."""

    def __init__(
        self,
        query_service: QueryService,
        flag_service: FlagService,
        spec: QuerySpec | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.query_service = query_service
        self.flag_service = flag_service
        self.spec = spec or QuerySpec()
        self.pages = PageWindow(self.spec.page_size)
        self.pages.sync(self.spec)
        self._text: Debouncer[str] = Debouncer(debounce_seconds, clock or time.monotonic)

    def type_text(self, text: str) -> None:
        self._text.submit(text)

    def tick(self) -> bool:
        """Apply settled search text. Returns True when the query changed."""
        settled, text = self._text.poll()
        if not settled or text is None:
            return False
        return self._update(text=text)

    def commit_text(self) -> bool:
        if not self._text.has_pending:
            return False
        return self._update(text=self._text.flush() or "")

    def toggle_topic(self, topic: str) -> bool:
        topics = set(self.spec.topics)
        topics.symmetric_difference_update({topic})
        return self._update(topics=frozenset(topics))

    def toggle_duration(self, bucket: str) -> bool:
        if bucket not in DURATION_FILTERS:
            raise ValueError(f"Unsupported duration filter: {bucket}")
        durations = set(self.spec.durations)
        durations.symmetric_difference_update({bucket})
        return self._update(durations=frozenset(durations))

    def clear_filters(self) -> bool:
        return self._update(topics=frozenset(), durations=frozenset(), owner=None)

    def set_owner(self, owner: str | None) -> bool:
        return self._update(owner=owner)

    def set_mode(self, mode: str) -> bool:
        return self._update(mode=mode)

    def set_sort(self, sort: str | None) -> bool:
        return self._update(sort=sort)

    def set_shuffle(self, seed: int | None) -> bool:
        return self._update(shuffle_seed=seed)

    def show_more(self) -> int:
        return self.pages.show_more()

    def toggle_flag(self, video_id: str, key: str) -> VideoFlags:
        return self.flag_service.toggle_flag(video_id, key)

    def results(self) -> QueryResult:
        return self.query_service.run(self.flag_service.snapshot(), self.spec, self.pages.visible_count)

    def _update(self, **changes: object) -> bool:
        updated = replace(self.spec, **changes)
        if updated == self.spec:
            return False
        self.spec = updated
        self.pages.sync(updated)
        return True
