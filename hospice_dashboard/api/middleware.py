"""
Request timing middleware
"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, duration and status for every request
    """
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"[TIMING] {request.method} {request.url.path} | duration={elapsed_ms:.2f}ms | status={response.status_code}"
        )
        return response
