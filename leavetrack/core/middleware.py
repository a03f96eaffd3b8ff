"""
HTTP middlewares: correlation id propagation and request logging.
"""
import time
import uuid
import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from leavetrack.core.config import settings
from leavetrack.core.logging import request_id_var, user_id_var
from leavetrack.services import auth as auth_service

logger = logging.getLogger(__name__)


def caller_user_id(authorization: Optional[str]) -> Optional[int]:
    """User id claim of a valid bearer token, for log context only (no access decision)."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    payload = auth_service.decode_access_token(authorization[7:].strip())
    if not payload or "error" in payload:
        return None
    return payload.get("user_id")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reuses the caller's X-Request-ID or generates one, and exposes it and the caller to log records."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
        request_token = request_id_var.set(request_id)
        user_token = user_id_var.set(caller_user_id(request.headers.get("Authorization")))
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            user_id_var.reset(user_token)
            request_id_var.reset(request_token)
        response.headers[settings.request_id_header] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """HTTP request/response logging"""

    excluded_paths = {"/health", "/liveness", "/docs", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(process_time * 1000, 2),
            },
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response
