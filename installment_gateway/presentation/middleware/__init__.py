"""Middleware for request processing."""

from .error_handler import error_handler_middleware, status_code_for
from .request_context import RequestContextMiddleware, get_request_id
from .logging import LoggingMiddleware

__all__ = [
    "error_handler_middleware",
    "status_code_for",
    "RequestContextMiddleware",
    "get_request_id",
    "LoggingMiddleware",
]
