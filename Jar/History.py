"""
Jar/History.py — Bounded LIFO stack of past browser states.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Optional

from Models import State

logger = logging.getLogger(__name__)


class MemoryHistory:
    """In-memory history jar.

    The most recent state sits at the head. When a push makes the stack
    longer than :attr:`max`, the oldest entries are dropped from the tail.
    A ``max`` of 0 disables trimming.
    """

    def __init__(self, max_len: int = 0) -> None:
        self._states: deque[State] = deque()
        self._max = 0
        self.max = max_len

    @property
    def max(self) -> int:
        return self._max

    @max.setter
    def max(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"history max must be >= 0, got {value}")
        self._max = value

    def __len__(self) -> int:
        return len(self._states)

    def clear(self) -> None:
        """Remove every state."""
        self._states.clear()

    def push(self, state: State) -> int:
        """Add *state* at the head and return the new length."""
        self._states.appendleft(state)
        if self._max:
            while len(self._states) > self._max:
                evicted = self._states.pop()
                logger.debug("History full (%d) — evicted %s", self._max, evicted.url)
        return len(self._states)

    def pop(self) -> Optional[State]:
        """Remove and return the most recent state, or *None* when empty."""
        if not self._states:
            return None
        return self._states.popleft()

    def top(self) -> Optional[State]:
        """Return the most recent state without removing it, or *None*."""
        if not self._states:
            return None
        return self._states[0]
