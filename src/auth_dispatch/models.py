"""Models for the authenticated request dispatcher.

Uses Pydantic v2 frozen models for values handed to callers and a slotted
dataclass for the queue entries the dispatcher owns.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable

import httpx
from pydantic import BaseModel, ConfigDict

from .errors import AuthDispatchError
from .telemetry import get_logger


class Outcome(StrEnum):
    """Classification of a completed request."""

    SUCCESS = "success"
    AUTHORIZATION_FAILURE = "authorization_failure"
    OTHER_FAILURE = "other_failure"


class AuthorizationState(StrEnum):
    """Coordinator state."""

    IDLE = "idle"
    AUTHORIZING = "authorizing"


class DispatchResult(BaseModel):
    """Outcome of a dispatched request, delivered to its callback.

    Either a response with a successful status, or a typed failure in
    ``error``. Requests failed because the authorizer itself failed carry no
    response and an ``AuthorizationDeniedError``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    request: httpx.Request
    outcome: Outcome
    response: httpx.Response | None = None
    error: AuthDispatchError | None = None
    retried: bool = False

    @property
    def ok(self) -> bool:
        """Check if the request succeeded."""
        return self.outcome == Outcome.SUCCESS and self.error is None

    @property
    def status_code(self) -> int | None:
        """Get response status, if a response was received."""
        return self.response.status_code if self.response is not None else None

    def raise_for_error(self) -> None:
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error

    def content(self) -> bytes:
        """Get response body, raising the carried error on failure."""
        self.raise_for_error()
        if self.response is None:
            return b""
        return self.response.content

    def json(self) -> Any:
        """Decode response body as JSON, raising the carried error on failure."""
        self.raise_for_error()
        if self.response is None:
            return None
        return self.response.json()


ResultCallback = Callable[[DispatchResult], None]


@dataclass(slots=True, eq=False)
class PendingRequest:
    """A request parked until the in-flight authorization resolves.

    The callback fires at most once; a repeated delivery is logged and
    dropped.
    """

    request: httpx.Request
    callback: ResultCallback
    _delivered: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def delivered(self) -> bool:
        """Check if the callback already fired."""
        return self._delivered

    def deliver(self, result: DispatchResult) -> bool:
        """Invoke the callback with ``result``.

        Exceptions raised by the callback are logged and not propagated.

        Returns:
            True if the callback was invoked, False if it already fired.
        """
        with self._lock:
            if self._delivered:
                get_logger().warning(
                    "Dropping repeated delivery",
                    method=self.request.method,
                    url=str(self.request.url),
                )
                return False
            self._delivered = True

        try:
            self.callback(result)
        except Exception:
            get_logger().exception(
                "Result callback raised",
                method=self.request.method,
                url=str(self.request.url),
                outcome=str(result.outcome),
            )
        return True
