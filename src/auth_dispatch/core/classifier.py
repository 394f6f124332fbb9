"""Response classification for the dispatcher.

Decides whether a completed request is a success, an authorization failure
that may be recovered by re-authorizing, or any other failure.
"""

from __future__ import annotations

import httpx

from ..models import Outcome

UNAUTHORIZED = 401
FORBIDDEN = 403


def is_authorization_failure(
    status_code: int,
    *,
    also_intercept_forbidden: bool = False,
) -> bool:
    """Check if a status code should trigger re-authorization.

    Args:
        status_code: HTTP status code.
        also_intercept_forbidden: Treat 403 like 401.

    Returns:
        True for 401, and for 403 when intercepting forbidden responses.
    """
    if status_code == UNAUTHORIZED:
        return True
    return also_intercept_forbidden and status_code == FORBIDDEN


def classify(
    response: httpx.Response | None,
    error: BaseException | None = None,
    *,
    also_intercept_forbidden: bool = False,
) -> Outcome:
    """Classify a completed request.

    Args:
        response: Response received, or None if the transport failed.
        error: Error raised while sending or reading the response.
        also_intercept_forbidden: Treat 403 like 401.

    Returns:
        The request outcome.
    """
    if isinstance(error, httpx.HTTPStatusError):
        response, error = error.response, None

    if error is not None or response is None:
        return Outcome.OTHER_FAILURE

    status = response.status_code
    if is_authorization_failure(status, also_intercept_forbidden=also_intercept_forbidden):
        return Outcome.AUTHORIZATION_FAILURE
    if status >= 400:
        return Outcome.OTHER_FAILURE
    return Outcome.SUCCESS
