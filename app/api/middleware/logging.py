# 📄 File: app/api/middleware/logging.py
# 🧭 Purpose (Layman Explanation):
# Keeps a diary of every request made to the engine API: what was asked for, how long it
# took and whether it failed.
# 🧪 Purpose (Technical Summary):
# Request logging middleware emitting one structured record per request through the
# StructuredLogger (method, path, status, duration, client), with slow-request warnings
# and excluded probe paths.
# 🔗 Dependencies:
# FastAPI, starlette, app.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# app.main (middleware registration)

import time
import uuid
from typing import Any, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.shared.utils.logging import get_logger

from . import should_exclude_path

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware.

    Features:
    - Structured JSON logging
    - Request/response timing
    - Slow request warnings
    """

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.request_id_header = "X-Request-ID"

    async def dispatch(self, request: Request, call_next) -> Response:
        if should_exclude_path("logging", request.url.path):
            return await call_next(request)

        request_id = self._get_or_create_request_id(request)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"HTTP {request.method} {request.url.path} failed: {type(e).__name__}",
                extra={**self._client_info(request), "request_id": request_id, "duration_ms": round(duration_ms, 2)},
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.log_request(
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={**self._client_info(request), "request_id": request_id},
        )

        if duration_ms / 1000 > self.slow_request_threshold:
            logger.warning(
                f"Slow request {request.method} {request.url.path}: {duration_ms:.0f}ms",
                extra={"request_id": request_id, "duration_ms": round(duration_ms, 2)},
            )

        response.headers[self.request_id_header] = request_id
        return response

    def _get_or_create_request_id(self, request: Request) -> str:
        if getattr(request.state, "request_id", None):
            return request.state.request_id

        request_id = request.headers.get(self.request_id_header) or str(uuid.uuid4())
        request.state.request_id = request_id
        return request_id

    def _client_info(self, request: Request) -> Dict[str, Any]:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()
        elif request.client:
            client_ip = request.client.host
        else:
            client_ip = "unknown"

        return {
            "client_ip": client_ip,
            "user_agent": request.headers.get("user-agent"),
        }
