import logging
import re
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger(__name__)

# Probes hit these constantly; logging them drowns out real traffic
QUIET_PATHS = {"/health"}
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    """Reuse the caller's X-Request-ID when it is a sane token, otherwise mint one."""
    incoming = request.headers.get("X-Request-ID", "")
    if REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return uuid.uuid4().hex


def level_for(status_code: int, duration_ms: float) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400 or duration_ms >= settings.SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request)
        request.state.request_id = request_id
        path = request.url.path
        extra = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "client": request.client.host if request.client else None,
        }

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            extra["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            logger.log(
                logging.ERROR,
                f"[{request_id}] {request.method} {path} - unhandled {type(exc).__name__}",
                extra={**extra, "error": str(exc)},
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        if path in QUIET_PATHS and response.status_code < 400:
            return response

        slow = " (slow)" if duration_ms >= settings.SLOW_REQUEST_MS else ""
        logger.log(
            level_for(response.status_code, duration_ms),
            f"[{request_id}] {request.method} {path} - {response.status_code} in {duration_ms}ms{slow}",
            extra={**extra, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response
