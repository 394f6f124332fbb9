"""Error classes for the authenticated request dispatcher.

Structured error hierarchy with error codes and correlation IDs. Errors are
never raised across the dispatcher boundary; they travel inside a
``DispatchResult`` and are raised by the caller via ``raise_for_error()``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the dispatcher."""

    # Authorization errors (1xxx)
    UNAUTHORIZED = "AUTH_1001"
    FORBIDDEN = "AUTH_1002"
    AUTHORIZATION_DENIED = "AUTH_1003"
    SIGNING_FAILED = "AUTH_1004"

    # Client errors (2xxx)
    CLIENT_ERROR = "HTTP_2001"

    # Network errors (3xxx)
    NETWORK_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"

    # Rate limiting (4xxx)
    RATE_LIMITED = "RATE_4001"

    # Server errors (5xxx)
    SERVER_ERROR = "SRV_5001"

    # Configuration errors (6xxx)
    INVALID_CONFIG = "CFG_6001"


class AuthDispatchError(Exception):
    """Base error with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class AuthorizationError(AuthDispatchError):
    """Base class for the authorization family of failures."""


class UnauthorizedError(AuthorizationError):
    """Endpoint answered 401 and no further retry is allowed."""

    def __init__(
        self,
        message: str = "Request is not authorized",
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
            correlation_id=correlation_id,
            details=details,
        )


class ForbiddenError(AuthorizationError):
    """Endpoint answered 403."""

    def __init__(
        self,
        message: str = "Access to the resource is forbidden",
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
            correlation_id=correlation_id,
            details=details,
        )


class AuthorizationDeniedError(AuthorizationError):
    """The authorizer failed to obtain a fresh credential.

    Delivered uniformly to every request parked during the failed cycle.
    """

    def __init__(
        self,
        message: str = "Authorization was denied",
        *,
        correlation_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.AUTHORIZATION_DENIED,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class SigningError(AuthorizationError):
    """The signer could not attach credential material to a request."""

    def __init__(
        self,
        message: str = "Failed to sign request",
        *,
        correlation_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.SIGNING_FAILED,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class ClientError(AuthDispatchError):
    """Request failed with a 4xx status other than the authorization ones."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.CLIENT_ERROR,
            status_code=status_code,
            correlation_id=correlation_id,
            details=details,
        )


class NetworkError(AuthDispatchError):
    """Network request failed."""

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.NETWORK_ERROR,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class TimeoutError(AuthDispatchError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.TIMEOUT_ERROR,
            status_code=408,
            correlation_id=correlation_id,
            details={"timeout_seconds": timeout_seconds} if timeout_seconds else None,
        )


class RateLimitError(AuthDispatchError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: int | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.RATE_LIMITED,
            status_code=429,
            correlation_id=correlation_id,
            details={"retry_after": retry_after} if retry_after else None,
        )
        self.retry_after = retry_after


class ServerError(AuthDispatchError):
    """Server-side error."""

    def __init__(
        self,
        message: str = "Server error",
        *,
        status_code: int = 500,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.SERVER_ERROR,
            status_code=status_code,
            correlation_id=correlation_id,
        )


class InvalidConfigError(AuthDispatchError):
    """Invalid dispatcher configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
