"""Request/response logging middleware with timing."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from loan_decision_engine.core.metrics import record_http_request
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _endpoint_label(request: Request) -> str:
    """
    Route template when the request matched one, so path ids stay out of labels.

    Routers included under a prefix may report their template relative to
    that prefix; the prefix is recovered from the request path.
    """
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    if not template:
        return request.url.path

    try:
        rendered = template.format(**request.path_params)
    except (KeyError, IndexError, ValueError):
        return template

    path = request.url.path
    if path.endswith(rendered):
        return path[: len(path) - len(rendered)] + template
    return template


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, completion and duration, and records HTTP metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        query = str(request.query_params) if request.query_params else None

        log = logger.bind(
            request_id=get_request_id(),
            method=method,
            path=path,
        )

        log.info("request_started", query=query)

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            record_http_request(method, _endpoint_label(request), 500, duration)
            log.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
            )
            raise

        duration = time.perf_counter() - start_time
        record_http_request(method, _endpoint_label(request), response.status_code, duration)
        log.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        return response
