"""Identifier and timestamp utilities for lloom.

Space and message ids are random; message timestamps come from a
clock that never repeats or goes backwards, so sorting a history by
timestamp always reproduces insertion order.
"""

import time
import uuid
from collections.abc import Callable

__all__ = [
    "MonotonicClock",
    "generate_id",
]


def generate_id() -> str:
    """Generate an opaque unique identifier.

    Returns:
        32-character hexadecimal UUID4 string
    """
    return uuid.uuid4().hex


class MonotonicClock:
    """Wall-clock milliseconds that strictly increase between calls.

    If the system clock stalls or steps back, the next reading is the
    previous one plus one millisecond.

    Example:
        clock = MonotonicClock()
        first, second = clock(), clock()
        assert second > first
    """

    def __init__(self, source: Callable[[], float] = time.time) -> None:
        """Initialize clock.

        Args:
            source: Callable returning wall-clock time in seconds
        """
        self._source = source
        self._last = 0

    def __call__(self) -> int:
        now = int(self._source() * 1000)
        if now <= self._last:
            now = self._last + 1
        self._last = now
        return now
