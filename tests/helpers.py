"""Shared helpers for dispatcher tests.

Provides a recording mock endpoint, fake authorizers and request builders
shared across the sync and async test modules.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any, Callable

import httpx

BASE_URL = "https://api.example.com"
STALE_TOKEN = "stale-token"
FRESH_TOKEN = "fresh-token"


def make_request(
    path: str = "/resource",
    *,
    token: str | None = STALE_TOKEN,
    method: str = "GET",
) -> httpx.Request:
    """Build a request signed with ``token``."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.Request(method, f"{BASE_URL}{path}", headers=headers)


class RecordingEndpoint:
    """Protected endpoint accepting only ``valid_token``.

    Records the path and authorization header of every request it sees.
    Paths in ``always_deny`` are refused whatever the token.
    """

    def __init__(
        self,
        valid_token: str = FRESH_TOKEN,
        *,
        denied_status: int = 401,
        always_deny: frozenset[str] = frozenset(),
        status_overrides: dict[str, int] | None = None,
    ) -> None:
        self.valid_token = valid_token
        self.denied_status = denied_status
        self.always_deny = always_deny
        self.status_overrides = status_overrides or {}
        self.seen: list[tuple[str, str | None]] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        auth = request.headers.get("Authorization")
        with self._lock:
            self.seen.append((request.url.path, auth))

        if request.url.path in self.status_overrides:
            return httpx.Response(self.status_overrides[request.url.path], json={"path": request.url.path})

        if auth != f"Bearer {self.valid_token}" or request.url.path in self.always_deny:
            return httpx.Response(
                self.denied_status,
                json={"error": "invalid_token", "error_description": "Token expired"},
            )
        return httpx.Response(200, json={"path": request.url.path})

    def paths(self, token: str | None = None) -> list[str]:
        """Paths seen, optionally only those sent with ``token``."""
        with self._lock:
            if token is None:
                return [path for path, _ in self.seen]
            return [path for path, auth in self.seen if auth == f"Bearer {token}"]


class CountingAuthorizer:
    """Blocking authorizer counting its calls."""

    def __init__(
        self,
        credential: Any = FRESH_TOKEN,
        *,
        error: Exception | None = None,
        before_return: Callable[[], None] | None = None,
    ) -> None:
        self.credential = credential
        self.error = error
        self.before_return = before_return
        self.calls = 0
        self._lock = threading.Lock()

    def authorize(self) -> Any:
        with self._lock:
            self.calls += 1
        if self.before_return is not None:
            self.before_return()
        if self.error is not None:
            raise self.error
        return self.credential


class AsyncCountingAuthorizer:
    """Async authorizer counting its calls, optionally held by a gate."""

    def __init__(
        self,
        credential: Any = FRESH_TOKEN,
        *,
        error: BaseException | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.credential = credential
        self.error = error
        self.gate = gate
        self.calls = 0

    async def authorize(self) -> Any:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.credential


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.001)
    return predicate()
