"""Single-flight authorization state shared by the sync and async dispatchers.

Holds the authorization state and the retry queue behind one lock. Critical
sections never block on I/O, never await and never call user code, so a
``threading.Lock`` serves both the threaded and the asyncio dispatcher.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from ..models import AuthorizationState
from .retry_queue import RetryQueue

if TYPE_CHECKING:
    from ..models import PendingRequest


class SingleFlightCoordinator:
    """Guarantees at most one authorization attempt in flight.

    Every transition is atomic with respect to the queue:

    - parking a request and observing ``AUTHORIZING`` happen together;
    - the ``IDLE -> AUTHORIZING`` test-and-set happens together with the
      enqueue of the request that triggered it;
    - the reset to ``IDLE`` and the drain happen together.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = AuthorizationState.IDLE
        self._queue = RetryQueue()

    @property
    def state(self) -> AuthorizationState:
        """Get current authorization state."""
        with self._lock:
            return self._state

    @property
    def is_authorizing(self) -> bool:
        """Check if an authorization attempt is in flight."""
        return self.state == AuthorizationState.AUTHORIZING

    @property
    def pending_count(self) -> int:
        """Get number of parked requests."""
        with self._lock:
            return len(self._queue)

    def park_if_authorizing(self, pending: PendingRequest) -> bool:
        """Park ``pending`` if an authorization is in flight.

        Returns:
            True if the request was parked.
        """
        with self._lock:
            if self._state != AuthorizationState.AUTHORIZING:
                return False
            self._queue.enqueue(pending)
            return True

    def enqueue_and_begin(self, pending: PendingRequest) -> bool:
        """Park ``pending`` and try to start an authorization.

        Returns:
            True if the caller must run the authorization.
        """
        with self._lock:
            self._queue.enqueue(pending)
            return self._begin_locked()

    def begin(self) -> bool:
        """Try to move from ``IDLE`` to ``AUTHORIZING``.

        Returns:
            True if the caller must run the authorization.
        """
        with self._lock:
            return self._begin_locked()

    def finish(self) -> list[PendingRequest]:
        """Return to ``IDLE`` and drain the queue in one step.

        Returns:
            Requests parked during the attempt, in FIFO order.
        """
        with self._lock:
            self._state = AuthorizationState.IDLE
            return self._queue.drain_all()

    def _begin_locked(self) -> bool:
        if self._state == AuthorizationState.AUTHORIZING:
            return False
        self._state = AuthorizationState.AUTHORIZING
        return True
