"""Access logging and HTTP metrics per request."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from installment_gateway.core.metrics import record_http_request

logger = structlog.get_logger(__name__)

# Polled by health checks and scrapers; logged at debug level only
QUIET_PATHS = frozenset({"/metrics", "/v1/health"})


def _endpoint_label(request: Request) -> str:
    """Route template (``/v1/installments/orders/{order_id}``) to bound label cardinality.

    Routes reached through a mounted router carry a path relative to the
    mount; the mount prefix is the part of ``root_path`` added after the
    application's own root path.
    """
    scope = request.scope
    route = scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if not template:
        return request.url.path

    root_path = scope.get("root_path", "")
    app_root_path = scope.get("app_root_path", "")
    if app_root_path and root_path.startswith(app_root_path):
        root_path = root_path[len(app_root_path):]
    if template.startswith(root_path):
        return template
    return root_path + template


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Emits one ``request_completed`` (or ``request_failed``) line per
    request and feeds the HTTP request counter and latency histogram.

    Request and user IDs come from the context bound by
    RequestContextMiddleware, which must wrap this middleware.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        quiet = request.url.path in QUIET_PATHS

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            endpoint = _endpoint_label(request)
            record_http_request(request.method, endpoint, 500, elapsed)
            logger.error(
                "request_failed",
                method=request.method,
                endpoint=endpoint,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(elapsed * 1000, 2),
            )
            raise

        elapsed = time.perf_counter() - started
        endpoint = _endpoint_label(request)
        record_http_request(request.method, endpoint, response.status_code, elapsed)

        log = logger.debug if quiet else logger.info
        log(
            "request_completed",
            method=request.method,
            endpoint=endpoint,
            path=request.url.path,
            query=str(request.query_params) or None,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )
        return response
