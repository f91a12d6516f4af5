"""OpenTelemetry and structlog integration for the Stitch SDK.

Every component logs through ``get_logger()`` and opens spans through
``trace_operation``. Session secrets are masked before any log line is
rendered.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from . import __version__
from .errors import StitchError

if TYPE_CHECKING:
    from collections.abc import Generator, MutableMapping

    from .config import TelemetryConfig

P = ParamSpec("P")
T = TypeVar("T")

SERVICE_NAME = "stitch-sdk"
REDACTED = "[redacted]"
SECRET_FIELDS = frozenset(
    {"access_token", "refresh_token", "authorization", "password", "token", "key"}
)

_tracer: trace.Tracer | None = None
_logger: structlog.BoundLogger | None = None
_trace_requests = True


def get_tracer() -> trace.Tracer:
    """Get or create the SDK tracer."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SERVICE_NAME, __version__)
    return _tracer


def get_logger() -> structlog.BoundLogger:
    """Get or create the SDK logger."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(SERVICE_NAME)
    return _logger


def redact_secrets(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor masking session secrets in log events."""
    for field in SECRET_FIELDS.intersection(event_dict):
        if event_dict[field] is not None:
            event_dict[field] = REDACTED
    return event_dict


def configure_telemetry(config: TelemetryConfig) -> None:
    """Configure logging and tracing for every app client in the process.

    A disabled config swaps in a no-op tracer and leaves logging as the
    host application configured it.
    """
    global _tracer, _logger, _trace_requests

    _trace_requests = config.enabled and config.trace_requests
    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_secrets,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _tracer = trace.get_tracer(config.service_name, __version__)
    _logger = structlog.get_logger(config.service_name)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run the enclosed block in a span.

    ``None`` attribute values are skipped. SDK errors escaping the block
    mark the span failed and record their error code.
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            if isinstance(e, StitchError):
                span.set_attribute("stitch.error.code", e.code)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


@contextmanager
def trace_request(method: str, path: str) -> Generator[trace.Span, None, None]:
    """Span around one HTTP exchange, unless request tracing is off."""
    if not _trace_requests:
        yield trace.INVALID_SPAN
        return
    with trace_operation(
        "stitch.request",
        attributes={"http.method": method, "http.route": path},
    ) as span:
        yield span


def traced(name: str | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator running a function inside ``trace_operation``."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with trace_operation(span_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator
