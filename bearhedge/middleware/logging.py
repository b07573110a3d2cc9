"""Per-request access log for the widget routes, off unless LOGGING_ENABLED."""

import logging
import os
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def access_log_enabled() -> bool:
    return os.getenv("LOGGING_ENABLED", "false").lower() == "true"


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not access_log_enabled():
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "widget_http_request",
            extra={
                "client_ip": request.client.host if request.client else None,
                "method": request.method,
                "endpoint": request.url.path,
                "status": response.status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                "widget": request.url.path.split("/")[2] if request.url.path.startswith("/v1/") else None,
            },
        )
        return response
