"""Tracing and structured logging for the dispatcher.

Spans come from the OpenTelemetry API and logs from structlog. Both are
no-ops until an SDK or a structlog configuration is installed, either by the
application or through ``configure_telemetry``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .config import TelemetryConfig
    from .models import DispatchResult

INSTRUMENTATION_NAME = "auth-dispatch"
INSTRUMENTATION_VERSION = "0.1.0"

_LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

_tracer: trace.Tracer | None = None
_logger: structlog.stdlib.BoundLogger | None = None


def get_tracer() -> trace.Tracer:
    """Get the dispatcher tracer, creating it on first use."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(INSTRUMENTATION_NAME, INSTRUMENTATION_VERSION)
    return _tracer


def get_logger() -> structlog.stdlib.BoundLogger:
    """Get the dispatcher logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(INSTRUMENTATION_NAME)
    return _logger


def configure_telemetry(config: TelemetryConfig) -> None:
    """Install tracer and logger settings from ``config``.

    A disabled config switches tracing off and leaves logging as the
    application configured it. An enabled one renders JSON log lines
    filtered at ``config.log_level`` and names the tracer and logger after
    ``config.service_name``.
    """
    global _tracer, _logger

    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _log_level_to_int(config.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _tracer = trace.get_tracer(config.service_name, INSTRUMENTATION_VERSION)
    _logger = structlog.get_logger(config.service_name)


def _log_level_to_int(level: str) -> int:
    return _LOG_LEVELS.get(level.upper(), _LOG_LEVELS["INFO"])


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Iterator[trace.Span]:
    """Run the enclosed block in a span named ``name``.

    An exception escaping the block marks the span as failed and is
    re-raised.
    """
    with get_tracer().start_as_current_span(name, attributes=attributes) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise


def record_outcome(span: trace.Span, result: DispatchResult) -> None:
    """Annotate a dispatch span with the status and outcome of ``result``.

    Failed results mark the span as failed.
    """
    span.set_attribute("dispatch.outcome", str(result.outcome))
    if result.status_code is not None:
        span.set_attribute("http.status_code", result.status_code)
    if not result.ok:
        description = result.error.message if result.error is not None else str(result.outcome)
        span.set_status(Status(StatusCode.ERROR, description))
