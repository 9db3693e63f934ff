# 📄 File: app/shared/utils/__init__.py

# 🧭 Purpose (Layman Explanation):
# Sets up the shared logging helpers that every part of Crumb Coach uses.

# 🧪 Purpose (Technical Summary):
# Initializes the utilities package and re-exports the structured logging API.

# 🔗 Dependencies:
# - logging: Structured logging utilities

# 🔄 Connected Modules / Calls From:
# Used by: app.main, API middleware

from .logging import get_logger, log_context, setup_logging

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
]
