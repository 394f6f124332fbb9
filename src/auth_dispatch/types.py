"""Collaborator protocols consumed by the dispatcher.

``httpx.Client`` and ``httpx.AsyncClient`` satisfy the transport protocols
as they are.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx


@runtime_checkable
class Transport(Protocol):
    """Sends a request and returns the response."""

    def send(self, request: httpx.Request) -> httpx.Response: ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Sends a request and returns the response, asynchronously."""

    async def send(self, request: httpx.Request) -> httpx.Response: ...


@runtime_checkable
class Authorizer(Protocol):
    """Obtains a fresh credential; raises on failure."""

    def authorize(self) -> Any: ...


@runtime_checkable
class AsyncAuthorizer(Protocol):
    """Obtains a fresh credential asynchronously; raises on failure."""

    async def authorize(self) -> Any: ...


@runtime_checkable
class Signer(Protocol):
    """Attaches credential material to an outgoing request."""

    def sign(self, request: httpx.Request, credential: Any) -> httpx.Request: ...
