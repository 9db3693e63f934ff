# 📄 File: app/api/__init__.py
# 🧭 Purpose (Layman Explanation):
# Marks the api folder as a Python package so the app can use its routes and middleware.
# 🧪 Purpose (Technical Summary):
# Package initialization for the API layer with version constants and re-exported
# exceptions for API-wide error handling.
# 🔗 Dependencies:
# app.shared.core.exceptions
# 🔄 Connected Modules / Calls From:
# app.main, API route imports, middleware imports

"""
Crumb Coach API Package

Structure:
    api/
    ├── __init__.py          # This file
    ├── middleware/          # Error handling and request logging
    └── v1/                  # API version 1
        ├── router.py        # Main v1 router
        └── health.py        # Health check endpoints
"""

API_PREFIX = "/api"
CURRENT_VERSION = "v1"
SUPPORTED_VERSIONS = ["v1"]

DEFAULT_HEADERS = {
    "X-API-Version": CURRENT_VERSION,
    "X-Service": "crumbcoach-api",
}

from app.shared.core.exceptions import (  # noqa: E402
    CrumbCoachException,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "CrumbCoachException",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "API_PREFIX",
    "CURRENT_VERSION",
    "SUPPORTED_VERSIONS",
    "DEFAULT_HEADERS",
]
