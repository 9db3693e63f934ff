# 📄 File: app/shared/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shared' folder as a package of common tools every part of Crumb Coach uses,
# like settings, error types, logging and the event bus.
#
# 🧪 Purpose (Technical Summary):
# Shared kernel package initialization for configuration, exceptions, the UI event bus
# and structured logging.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - All application modules importing shared utilities

__all__ = []
