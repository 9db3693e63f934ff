# 📄 File: app/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines the special error types Crumb Coach uses to communicate
# what went wrong in a clear, organized way instead of generic error messages.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy providing specific error types with HTTP status codes,
# error details, and proper serialization for API responses and error handling.
# 🔗 Dependencies:
# FastAPI status constants, typing
# 🔄 Connected Modules / Calls From:
# Domain services, repositories, notification engine, middleware, API endpoints

from typing import Any, Dict, Optional
from fastapi import status


class CrumbCoachException(Exception):
    """
    Base exception class for Crumb Coach.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }


# =============================================================================
# VALIDATION & DATA EXCEPTIONS
# =============================================================================

class ValidationError(CrumbCoachException):
    """
    Exception raised for data validation failures.
    Used when input data doesn't meet validation requirements.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if constraint:
            details["constraint"] = constraint

        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            error_code="VALIDATION_ERROR"
        )


class NotFoundError(CrumbCoachException):
    """
    Exception raised when requested resource is not found.
    Used for missing bakes, steps, etc.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code="NOT_FOUND"
        )


class BakeNotFoundError(NotFoundError):
    """
    Exception raised when a bake is not found.
    Specialized NotFoundError for bake resources.
    """

    def __init__(self, bake_id: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Bake not found: {bake_id}",
            resource_type="bake",
            resource_id=bake_id,
        )


# =============================================================================
# STORAGE & INFRASTRUCTURE EXCEPTIONS
# =============================================================================

class StorageError(CrumbCoachException):
    """
    Exception raised for storage collaborator failures.
    Surfaces to API clients as a generic 500.
    """

    def __init__(
        self,
        message: str = "Storage error",
        operation: Optional[str] = None,
        table: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table

        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code="STORAGE_ERROR"
        )


class CapabilityUnavailableError(CrumbCoachException):
    """
    Exception raised inside the notification engine when a platform
    capability (timer, notification channel, audio) is missing.
    The engine catches it and degrades; it never reaches callers.
    """

    def __init__(
        self,
        capability: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        details["capability"] = capability

        super().__init__(
            message=message or f"Capability unavailable: {capability}",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code="CAPABILITY_UNAVAILABLE"
        )


class EngineNotReadyError(CrumbCoachException):
    """
    Exception raised when the API is asked to use the notification
    engine before the application lifespan has constructed it.
    """

    def __init__(self, message: str = "Notification engine is not running"):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="ENGINE_NOT_READY"
        )

