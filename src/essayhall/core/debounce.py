from __future__ import annotations

import time
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.14

_NOTHING = object()


class Debouncer(Generic[T]):
    """Coalesce rapid submissions into one settled value.

    Cancellation only: a newer ``submit`` silently replaces the pending value,
    and ``poll`` hands out the latest value once ``delay`` has passed since it
    was submitted. Nothing runs on a timer thread; the caller polls.
    """

    def __init__(self, delay: float = DEFAULT_DEBOUNCE_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = delay
        self.clock = clock
        self._pending: object = _NOTHING
        self._submitted_at = 0.0

    @property
    def has_pending(self) -> bool:
        return self._pending is not _NOTHING

    def submit(self, value: T) -> None:
        self._pending = value
        self._submitted_at = self.clock()

    def poll(self) -> tuple[bool, T | None]:
        if self._pending is _NOTHING or self.clock() - self._submitted_at < self.delay:
            return False, None
        return True, self.flush()

    def flush(self) -> T | None:
        value = self._pending
        self._pending = _NOTHING
        return None if value is _NOTHING else value  # type: ignore[return-value]

    def cancel(self) -> None:
        self._pending = _NOTHING
