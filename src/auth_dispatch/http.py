"""HTTP client utilities for the dispatcher.

Builds configured httpx transports and provides the default bearer-token
signer used when replaying requests after re-authorization.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from .errors import SigningError

if TYPE_CHECKING:
    from .config import DispatcherConfig


def _client_options(config: DispatcherConfig) -> dict[str, Any]:
    return {
        "base_url": config.base_url_str,
        "timeout": httpx.Timeout(
            connect=config.connect_timeout,
            read=config.timeout,
            write=config.timeout,
            pool=config.timeout,
        ),
        "headers": {
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        },
        "follow_redirects": False,
    }


def create_http_client(config: DispatcherConfig) -> httpx.Client:
    """Create configured sync HTTP client.

    Args:
        config: Dispatcher configuration.

    Returns:
        Configured httpx.Client.
    """
    return httpx.Client(**_client_options(config))


def create_async_http_client(config: DispatcherConfig) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        config: Dispatcher configuration.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(**_client_options(config))


class BearerTokenSigner:
    """Signs requests with an ``Authorization`` header.

    Accepts a plain token string, or any object exposing ``access_token`` and
    optionally ``token_type`` (such as an OAuth 2.0 token response).
    """

    def __init__(self, header: str = "Authorization", default_token_type: str = "Bearer") -> None:
        self.header = header
        self.default_token_type = default_token_type

    def sign(self, request: httpx.Request, credential: Any) -> httpx.Request:
        """Set the authorization header on ``request`` and return it.

        Raises:
            SigningError: If no token can be read from ``credential``.
        """
        token_type = self.default_token_type
        if isinstance(credential, str):
            token = credential
        else:
            token = getattr(credential, "access_token", None)
            token_type = getattr(credential, "token_type", None) or token_type

        if not token:
            raise SigningError("Credential carries no access token")

        request.headers[self.header] = f"{token_type} {token}"
        return request
