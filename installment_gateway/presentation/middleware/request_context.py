"""Request context middleware for tracing."""

import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "X-Request-ID"
USER_ID_HEADER = "X-User-ID"


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Sets up the per-request logging context.

    The request ID (taken from ``X-Request-ID`` or generated) and the
    caller's ``X-User-ID`` are bound into structlog's context variables
    so every log line of the request carries them. The request ID is
    echoed back in the response headers.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)

        structlog.contextvars.clear_contextvars()
        context = {"request_id": request_id}
        user_id = request.headers.get(USER_ID_HEADER)
        if user_id:
            context["user_id"] = user_id
        structlog.contextvars.bind_contextvars(**context)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()
            request_id_var.reset(token)
