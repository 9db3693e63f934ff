# 📄 File: app/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Contains all the settings and configuration files that tell Crumb Coach
# how to connect to storage services and how its bake timers should behave.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization with exports for settings management.
#
# 🔗 Dependencies:
# - settings.py (application settings)
#
# 🔄 Connected Modules / Calls From:
# - app.main (application startup)
# - All modules requiring configuration

"""
Configuration Management Package

Handles all application configuration including:
- Environment-based settings
- Supabase storage configuration
- Redis durable store configuration
- Notification engine and recalibration tunables
"""

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
