# app/middleware/request_logger.py
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()

        # Call actual endpoint
        response = await call_next(request)

        # Only log requests that modify state; the audit trail itself is written by the services
        if request.method in MUTATING_METHODS:
            caller = getattr(request.state, "caller", None)
            who = f"{caller.role}:{caller.id}" if caller else "anonymous"
            logger.info(
                "%s %s by %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                who,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )

        return response
