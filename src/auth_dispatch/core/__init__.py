"""Core components of the dispatcher.

Classification, queueing and single-flight state shared between the sync
and async dispatchers.
"""

from __future__ import annotations

from .classifier import classify, is_authorization_failure
from .coordinator import SingleFlightCoordinator
from .errors import ErrorFactory
from .retry_queue import RetryQueue

__all__ = [
    "classify",
    "is_authorization_failure",
    "SingleFlightCoordinator",
    "ErrorFactory",
    "RetryQueue",
]
