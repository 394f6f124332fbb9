"""Result construction shared by the sync and async dispatchers."""

from __future__ import annotations

import httpx

from ..errors import AuthDispatchError
from ..models import DispatchResult, Outcome
from .classifier import classify
from .errors import ErrorFactory


def result_from_response(
    request: httpx.Request,
    response: httpx.Response,
    *,
    also_intercept_forbidden: bool,
    retried: bool = False,
) -> DispatchResult:
    """Build the result for a response the transport returned.

    Failed statuses carry the matching typed error.
    """
    outcome = classify(response, also_intercept_forbidden=also_intercept_forbidden)
    error = None
    if outcome != Outcome.SUCCESS:
        error = ErrorFactory.from_http_response(response)
    return DispatchResult(
        request=request,
        response=response,
        outcome=outcome,
        error=error,
        retried=retried,
    )


def result_from_exception(
    request: httpx.Request,
    exc: Exception,
    *,
    also_intercept_forbidden: bool,
    retried: bool = False,
) -> DispatchResult:
    """Build the result for a request whose send or body read raised."""
    if isinstance(exc, httpx.HTTPStatusError):
        return result_from_response(
            request,
            exc.response,
            also_intercept_forbidden=also_intercept_forbidden,
            retried=retried,
        )
    return DispatchResult(
        request=request,
        outcome=classify(None, exc, also_intercept_forbidden=also_intercept_forbidden),
        error=ErrorFactory.from_exception(exc),
        retried=retried,
    )


def failure_result(
    request: httpx.Request,
    error: AuthDispatchError,
    *,
    retried: bool = False,
) -> DispatchResult:
    """Build a synthesized failure with no response."""
    return DispatchResult(
        request=request,
        outcome=Outcome.OTHER_FAILURE,
        error=error,
        retried=retried,
    )
