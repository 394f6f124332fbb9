"""Authenticated request dispatcher."""

from .async_dispatcher import AsyncAuthenticatedDispatcher
from .config import DispatcherConfig, TelemetryConfig
from .dispatcher import AuthenticatedDispatcher
from .errors import (
    AuthDispatchError,
    AuthorizationDeniedError,
    AuthorizationError,
    ForbiddenError,
    InvalidConfigError,
    NetworkError,
    SigningError,
    UnauthorizedError,
)
from .http import BearerTokenSigner
from .models import AuthorizationState, DispatchResult, Outcome

__all__ = [
    "AsyncAuthenticatedDispatcher",
    "AuthenticatedDispatcher",
    "DispatcherConfig",
    "TelemetryConfig",
    "AuthDispatchError",
    "AuthorizationError",
    "AuthorizationDeniedError",
    "ForbiddenError",
    "InvalidConfigError",
    "NetworkError",
    "SigningError",
    "UnauthorizedError",
    "BearerTokenSigner",
    "AuthorizationState",
    "DispatchResult",
    "Outcome",
]

__version__ = "0.1.0"
