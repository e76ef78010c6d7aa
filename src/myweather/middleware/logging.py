"""Logging configuration and request logging middleware."""

import logging
import re
import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from myweather.config import Settings

REQUEST_ID_HEADER = "X-Request-ID"

# Accepted inbound request ids; anything else is replaced
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Metrics
http_requests = Counter(
    "myweather_http_requests_total",
    "Total HTTP requests served",
    ["method", "path", "status"],
)
http_duration = Histogram(
    "myweather_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

_SHARED_PROCESSORS: list[structlog.typing.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _renderers(log_format: str) -> list[structlog.typing.Processor]:
    if log_format == "json":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def configure_logging(settings: Settings) -> None:
    """Configure structlog from settings.

    ``log_format`` selects JSON lines (tracebacks as structured data) or the
    colored console renderer. Unknown level names fall back to INFO.
    """
    log_level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, *_renderers(settings.log_format)],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def request_id_for(request: Request) -> str:
    """Reuse a well-formed inbound request id, otherwise mint a short one."""
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    if _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return uuid.uuid4().hex[:8]


def _route_path(request: Request) -> str:
    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _observe(request: Request, status_code: int, duration: float) -> None:
    path = _route_path(request)
    http_requests.labels(method=request.method, path=path, status=str(status_code)).inc()
    http_duration.labels(method=request.method, path=path).observe(duration)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Binds a request id, logs each request and records metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Run the request inside a bound log context and time it.

        Unhandled exceptions are counted as 500 and re-raised.
        """
        request_id = request_id_for(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            _observe(request, 500, elapsed)
            log.exception("Request failed", duration_ms=round(elapsed * 1000, 2))
            raise

        elapsed = time.perf_counter() - started
        _observe(request, response.status_code, elapsed)
        log.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
