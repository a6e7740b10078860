"""Truncated binary exponential backoff for rate-limited actions."""

from __future__ import annotations

import random

from ..core.config import BACKOFF_CEILING


class TruncatedBackoff:
    """Random wait drawn from a window that doubles on every retry.

    One instance belongs to one logical call. The first retry draws from
    ``[0, 2)``, the next from ``[0, 4)`` and so on, until the window reaches
    ``ceiling`` where it stays. The number of retries is unbounded; only the
    wait time is.
    """

    def __init__(self, ceiling: int = BACKOFF_CEILING, rng: random.Random | None = None) -> None:
        if ceiling < 1:
            raise ValueError(f"ceiling must be at least 1, got {ceiling}")
        self._ceiling = ceiling
        self._rng = rng or random.Random()
        self.upper_bound = 1
        self.attempts = 0

    @property
    def ceiling(self) -> int:
        return self._ceiling

    def next_wait(self) -> int:
        """Double the window (up to the ceiling) and draw whole seconds from it."""
        if self.upper_bound < self._ceiling:
            self.upper_bound = min(self.upper_bound << 1, self._ceiling)
        self.attempts += 1
        return self._rng.randrange(self.upper_bound)
