from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Optional, TypeVar

from config import TOAST_HOLD_SECONDS

T = TypeVar("T")


class ToastQueue(Generic[T]):
    """Sequential notification queue: one item on screen at a time.

    An item becomes current only when nothing else is showing, stays current
    for ``hold_seconds`` and is then vacated before the next one is taken.
    """

    def __init__(self, hold_seconds: float = TOAST_HOLD_SECONDS) -> None:
        self.hold_seconds = hold_seconds
        self._pending: Deque[T] = deque()
        self._current: Optional[T] = None
        self._shown_at: float = 0.0

    def push(self, *items: T) -> None:
        self._pending.extend(items)

    @property
    def current(self) -> Optional[T]:
        return self._current

    @property
    def pending(self) -> int:
        return len(self._pending)

    def update(self, now: float) -> Optional[T]:
        if self._current is not None and now - self._shown_at >= self.hold_seconds:
            self._current = None
            # Vacate for at least one update before the next toast appears.
            return None
        if self._current is None and self._pending:
            self._current = self._pending.popleft()
            self._shown_at = now
        return self._current
