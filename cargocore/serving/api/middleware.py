"""
API Middleware

Request logging tagged with the dashboard page being served, and
response headers for a JSON-only API.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/"
PAGE_SUFFIX = "-data"


def page_for_path(path: str) -> Optional[str]:
    """Dashboard page a request belongs to.

    ``/api/cost-data`` is the ``cost`` page, ``/api/ai-chat/quick-actions``
    the ``ai-chat`` page. Paths outside the API have no page.
    """
    if not path.startswith(API_PREFIX):
        return None
    segment = path[len(API_PREFIX):].split("/", 1)[0]
    if not segment:
        return None
    if segment.endswith(PAGE_SUFFIX):
        segment = segment[: -len(PAGE_SUFFIX)]
    return segment


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its page and timing"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        page = page_for_path(request.url.path)

        bind_contextvars(request_id=request_id, page=page)
        logger.info("Request started", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            log = logger.warning if response.status_code >= 500 else logger.info
            log("Request completed", status_code=response.status_code, duration_ms=duration_ms)
        finally:
            unbind_contextvars("request_id", "page")

        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        response.headers["X-Request-ID"] = request_id
        if page:
            response.headers["X-Dashboard-Page"] = page

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Security and caching headers for JSON responses.

    Dashboard payloads are live snapshots, so API responses are never cached.
    HSTS is only sent when ``hsts`` is set (production deployments).
    """

    def __init__(self, app, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if request.url.path.startswith(API_PREFIX):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
            response.headers["Cache-Control"] = "no-store"
        if self.hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
