"""Sequence number allocation for outbound messages."""

import itertools


class SequenceAllocator:
    """
    Issues increasing sequence numbers starting at 1.

    One allocator is owned by each connection and shared by outbound
    requests and responses.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._last = 0

    @property
    def last(self) -> int:
        """Most recently issued number, 0 if none yet."""
        return self._last

    def next(self) -> int:
        """Return the next sequence number."""
        self._last = next(self._counter)
        return self._last

    def reset(self) -> None:
        """Start again from 1."""
        self._counter = itertools.count(1)
        self._last = 0
