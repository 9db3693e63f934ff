# 📄 File: app/api/middleware/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the helpers that wrap every request: one that logs what happened and one
# that turns errors into clean messages.
# 🧪 Purpose (Technical Summary):
# Package initialization for API middleware components with shared configuration
# (excluded paths per middleware).
# 🔗 Dependencies:
# typing
# 🔄 Connected Modules / Calls From:
# app.main, app.api.middleware.logging

"""
Crumb Coach API Middleware Package

Middleware Stack Order (outermost first):
    1. ErrorHandlingMiddleware (catches all errors, assigns request ids)
    2. RequestLoggingMiddleware (logs all requests/responses)
    3. Application Routes
"""

from typing import Any, Dict, List

MIDDLEWARE_CONFIG: Dict[str, Dict[str, Any]] = {
    "logging": {
        "enabled": True,
        "exclude_paths": [
            "/api/v1/health",
            "/api/v1/health/live",
            "/api/v1/health/ready",
            "/favicon.ico",
        ],
    },
    "error_handling": {
        "enabled": True,
        "exclude_paths": [],
    },
}


def get_middleware_config(name: str) -> Dict[str, Any]:
    """Get configuration for a middleware component."""
    return MIDDLEWARE_CONFIG.get(name, {})


def should_exclude_path(middleware_name: str, path: str) -> bool:
    """Check whether a path is excluded from a middleware."""
    exclude_paths: List[str] = get_middleware_config(middleware_name).get("exclude_paths", [])
    return path in exclude_paths


__all__ = [
    "MIDDLEWARE_CONFIG",
    "get_middleware_config",
    "should_exclude_path",
]
