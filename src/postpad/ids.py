"""
Id generation for Postpad.

Ids are Unix timestamps in milliseconds, the same shape older stores
used, but never repeat: two posts created in the same millisecond get
consecutive ids.
"""

import time
from typing import Callable


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


class IdGenerator:
    """Monotonic millisecond id source."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._last = 0

    def observe(self, post_id: int) -> None:
        """Make sure future ids are issued above an existing one."""
        if post_id > self._last:
            self._last = post_id

    def next(self) -> int:
        """Issue a fresh id."""
        candidate = self._clock()
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate
