"""Fixed-size grouping of large entity collections.

The server accepts at most ``MAX_GROUP_QUERY`` titles per multi-title
request, so batch helpers poll their input through a BatchGrouper.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Generic, TypeVar

from ..core.config import MAX_GROUP_QUERY

T = TypeVar("T")


class BatchGrouper(Generic[T]):
    """Read-only queue that hands out up to ``window_size`` items per poll."""

    def __init__(self, source: Iterable[T], window_size: int = MAX_GROUP_QUERY) -> None:
        """Initialize grouper.

        Args:
            source: Items to group; never modified
            window_size: Maximum number of items per batch

        Raises:
            ValueError: If ``window_size`` is not positive
        """
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self._source: Sequence[T] = source if isinstance(source, Sequence) else list(source)
        self._window_size = window_size
        self._cursor = 0

    @property
    def window_size(self) -> int:
        return self._window_size

    def has_more(self) -> bool:
        return self._cursor < len(self._source)

    def next_batch(self) -> list[T]:
        """Return the next batch, or an empty list once exhausted.

        The cursor always moves by a full window, so a short final batch
        still leaves the grouper exhausted.
        """
        if not self.has_more():
            return []
        batch = list(self._source[self._cursor : self._cursor + self._window_size])
        self._cursor += self._window_size
        return batch

    def __iter__(self) -> Iterator[list[T]]:
        while self.has_more():
            yield self.next_batch()

    def __len__(self) -> int:
        """Number of batches still to be handed out."""
        remaining = len(self._source) - self._cursor
        return max(0, -(-remaining // self._window_size))
