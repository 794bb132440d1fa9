"""Request context middleware for tracing."""

import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Sets up the per-request tracing context.

    The request ID is taken from the incoming header or generated, echoed on
    the response and bound into structlog's context together with the
    acting user, so every log line of the request carries both.
    """

    HEADER_NAME = "X-Request-ID"
    ACTOR_HEADER_NAME = "X-User-Id"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())

        token = request_id_var.set(request_id)
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            actor_id=request.headers.get(self.ACTOR_HEADER_NAME),
        )

        try:
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "actor_id")
            request_id_var.reset(token)
