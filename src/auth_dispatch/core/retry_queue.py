"""FIFO queue of requests waiting for re-authorization."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import PendingRequest


class RetryQueue:
    """Ordered, append-only-until-drained collection of pending requests.

    Not synchronized; callers hold the coordinator lock around every call.
    """

    def __init__(self) -> None:
        self._pending: deque[PendingRequest] = deque()

    def enqueue(self, pending: PendingRequest) -> None:
        """Append a pending request to the tail."""
        self._pending.append(pending)

    def drain_all(self) -> list[PendingRequest]:
        """Detach and return every pending request in FIFO order.

        Requests enqueued afterwards go to a fresh queue.
        """
        drained, self._pending = self._pending, deque()
        return list(drained)

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)
