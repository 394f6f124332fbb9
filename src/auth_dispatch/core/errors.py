"""Centralized error factory for the dispatcher.

Provides consistent error creation from transport responses and exceptions
for both the sync and async dispatchers.
"""

from __future__ import annotations

import uuid
from typing import Any

import httpx

from ..errors import (
    AuthDispatchError,
    AuthorizationDeniedError,
    ClientError,
    ForbiddenError,
    NetworkError,
    RateLimitError,
    ServerError,
    SigningError,
    TimeoutError,
    UnauthorizedError,
)


class ErrorFactory:
    """Centralized error creation with consistent structure.

    All errors created through this factory include:
    - Standardized error codes
    - A correlation ID for tracing
    - Consistent detail structure for logging
    """

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def _error_details(response: httpx.Response) -> dict[str, Any]:
        """Extract OAuth-style error fields from a JSON body, if any."""
        details: dict[str, Any] = {}
        try:
            body = response.json()
        except (ValueError, httpx.ResponseNotRead):
            return details
        if isinstance(body, dict):
            if body.get("error") is not None:
                details["error"] = body.get("error")
            if body.get("error_description") is not None:
                details["error_description"] = body.get("error_description")
        return details

    @staticmethod
    def from_http_response(
        response: httpx.Response,
        *,
        correlation_id: str | None = None,
    ) -> AuthDispatchError:
        """Create error from a failed HTTP response.

        Args:
            response: HTTP response with a 4xx/5xx status.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate AuthDispatchError subclass.
        """
        status = response.status_code
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()
        details = ErrorFactory._error_details(response)
        description = details.get("error_description")

        if status == 401:
            return UnauthorizedError(
                description or "Request is not authorized",
                correlation_id=correlation_id,
                details=details,
            )

        if status == 403:
            return ForbiddenError(
                description or "Access to the resource is forbidden",
                correlation_id=correlation_id,
                details=details,
            )

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimitError(
                description or "Rate limit exceeded",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                correlation_id=correlation_id,
            )

        if status >= 500:
            return ServerError(
                description or f"Server error: {status}",
                status_code=status,
                correlation_id=correlation_id,
            )

        return ClientError(
            description or f"Request failed with status {status}",
            status_code=status,
            correlation_id=correlation_id,
            details=details,
        )

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> AuthDispatchError:
        """Create error from a transport exception.

        Args:
            exc: Original exception.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate AuthDispatchError subclass.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, AuthDispatchError):
            if exc.correlation_id is None:
                exc.correlation_id = correlation_id
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(
                f"Request timed out: {exc}",
                correlation_id=correlation_id,
            )

        if isinstance(exc, httpx.HTTPStatusError):
            return ErrorFactory.from_http_response(
                exc.response,
                correlation_id=correlation_id,
            )

        if isinstance(exc, httpx.ConnectError):
            return NetworkError(
                f"Connection failed: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        if isinstance(exc, httpx.HTTPError):
            return NetworkError(
                f"HTTP error: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        return NetworkError(
            f"Unexpected error: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )

    @staticmethod
    def authorization_denied(
        cause: BaseException | None = None,
        *,
        correlation_id: str | None = None,
    ) -> AuthorizationDeniedError:
        """Create the error handed to every request parked in a failed cycle.

        Args:
            cause: Exception raised by the authorizer, if any.
            correlation_id: Optional correlation ID shared by the whole cycle.

        Returns:
            AuthorizationDeniedError chained to the cause.
        """
        if isinstance(cause, AuthorizationDeniedError):
            return cause
        message = f"Authorization failed: {cause}" if cause else "Authorization was denied"
        return AuthorizationDeniedError(
            message,
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
            cause=cause,
        )

    @staticmethod
    def signing_failed(
        cause: Exception,
        *,
        correlation_id: str | None = None,
    ) -> SigningError:
        """Create error for a request the signer could not sign."""
        if isinstance(cause, SigningError):
            if cause.correlation_id is None:
                cause.correlation_id = correlation_id or ErrorFactory.generate_correlation_id()
            return cause
        return SigningError(
            f"Failed to sign request: {cause}",
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
            cause=cause,
        )
