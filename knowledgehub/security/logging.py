"""Request logging middleware"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("knowledgehub.requests")


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, status, duration and client."""

    def __init__(self, app, skip_static: bool = True):
        super().__init__(app)
        self.skip_static = skip_static

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        path = request.url.path
        if self.skip_static and path.startswith("/static/"):
            return response

        logger.log(
            level_for_status(response.status_code),
            f"{request.method} {path} {response.status_code} "
            f"{duration_ms:.1f}ms ip={get_client_ip(request)}"
        )
        return response
