# 📄 File: app/api/middleware/error_handling.py
# 🧭 Purpose (Layman Explanation):
# Catches any errors that happen while handling a request and turns them into consistent,
# readable error messages instead of crashing or leaking technical details.
# 🧪 Purpose (Technical Summary):
# Global error handling middleware that assigns a request id, converts unhandled exceptions
# into the JSON error envelope, and logs them with request context. Also provides the
# helpers used by the application-level exception handlers.
# 🔗 Dependencies:
# FastAPI, starlette, app.shared.core.exceptions, app.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# app.main (middleware and exception handler registration)

import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.shared.config.settings import get_settings
from app.shared.core.exceptions import CrumbCoachException
from app.shared.utils.logging import log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware for the Crumb Coach API.

    Domain exceptions normally reach the application exception handler;
    this middleware is the last line for anything that escapes it.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.settings = get_settings()

        self.error_status_map = {
            ValueError: 400,
            TypeError: 400,
            KeyError: 400,
            ConnectionError: 503,
            TimeoutError: 504,
        }

        self.error_messages = {
            ValueError: "Invalid request data",
            TypeError: "Invalid data type in request",
            KeyError: "Missing required field",
            ConnectionError: "Service connection failed",
            TimeoutError: "Request timeout",
        }

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = datetime.now(timezone.utc)

        with log_context(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                return self._handle_exception(request, exc, request_id, start_time)

        processing_time = (datetime.now(timezone.utc) - start_time).total_seconds()
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{processing_time:.3f}s"
        return response

    def _handle_exception(
        self,
        request: Request,
        exc: Exception,
        request_id: str,
        start_time: datetime,
    ) -> JSONResponse:
        status_code = self._get_status_code(exc)
        error_code, error_message, error_details = self._get_error_info(exc)

        self._log_error(request, exc, request_id, status_code)

        error_response = build_error_body(
            error_code,
            error_message,
            error_details,
            request_id=request_id,
            path=str(request.url.path),
            method=request.method,
        )

        if self.settings.DEBUG and not self.settings.is_production:
            error_response["error"]["debug"] = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exc().split("\n"),
            }

        processing_time = (datetime.now(timezone.utc) - start_time).total_seconds()
        response = JSONResponse(status_code=status_code, content=error_response)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{processing_time:.3f}s"
        response.headers["X-Error-Code"] = error_code
        return response

    def _get_status_code(self, exc: Exception) -> int:
        if isinstance(exc, HTTPException):
            return exc.status_code
        if isinstance(exc, CrumbCoachException):
            return exc.status_code
        for exc_type, status_code in self.error_status_map.items():
            if isinstance(exc, exc_type):
                return status_code
        return 500

    def _get_error_info(self, exc: Exception) -> Tuple[str, str, Dict[str, Any]]:
        if isinstance(exc, CrumbCoachException):
            error = exc.to_dict()["error"]
            return error["code"], error["message"], error["details"]

        if isinstance(exc, HTTPException):
            return f"HTTP_{exc.status_code}", str(exc.detail), {}

        error_details: Dict[str, Any] = {}
        exc_type = type(exc)
        if exc_type in self.error_messages:
            error_code = exc_type.__name__.upper()
            error_message = self.error_messages[exc_type]
        else:
            error_code = "INTERNAL_SERVER_ERROR"
            error_message = "An internal server error occurred"

        if str(exc) and not self._is_sensitive_error(exc):
            error_details["exception_message"] = str(exc)

        return error_code, error_message, error_details

    def _is_sensitive_error(self, exc: Exception) -> bool:
        sensitive_keywords = [
            "password", "token", "secret", "key", "auth",
            "database", "connection", "sql", "supabase", "redis",
        ]
        error_message = str(exc).lower()
        return any(keyword in error_message for keyword in sensitive_keywords)

    def _log_error(self, request: Request, exc: Exception, request_id: str, status_code: int) -> None:
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": str(request.url.path),
            "status_code": status_code,
            "exception_type": type(exc).__name__,
            "client_ip": request.client.host if request.client else "unknown",
        }

        if status_code >= 500:
            logger.error(
                f"Server error in {request.method} {request.url.path}",
                extra={"extra_fields": context},
                exc_info=True,
            )
        else:
            logger.info(
                f"Client error in {request.method} {request.url.path}",
                extra={"extra_fields": context},
            )


def build_error_body(
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
    path: Optional[str] = None,
    method: Optional[str] = None,
) -> Dict[str, Any]:
    """The JSON error envelope shared by the middleware and exception handlers."""
    return {
        "error": {
            "code": error_code,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "path": path,
            "method": method,
        }
    }


def create_error_response(
    request: Request,
    error_code: str,
    message: str,
    status_code: int = 500,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Create a standardized error response for a request."""
    request_id = getattr(request.state, "request_id", None)
    response = JSONResponse(
        status_code=status_code,
        content=build_error_body(
            error_code,
            message,
            details,
            request_id=request_id,
            path=str(request.url.path),
            method=request.method,
        ),
    )
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Error-Code"] = error_code
    return response


def handle_validation_error(request: Request, exc) -> JSONResponse:
    """Format request validation errors as a 422 envelope."""
    validation_errors = []
    for error in exc.errors():
        validation_errors.append({
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "validation_error"),
        })

    return create_error_response(
        request,
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=422,
        details={"validation_errors": validation_errors},
    )
