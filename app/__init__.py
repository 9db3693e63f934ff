# 📄 File: app/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Tells Python this 'app' folder contains the Crumb Coach bake engine service and holds
# its version information.
#
# 🧪 Purpose (Technical Summary):
# Application package initialization with version metadata for the Crumb Coach
# bake-timeline notification and recalibration FastAPI service.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - main.py (application entry point)
# - Package imports throughout the application

"""
Crumb Coach - Bake Timeline Engine

Schedules wall-clock reminders for multi-step bakes, survives restarts by
reconciling persisted intent, and recalibrates bake end times from the
kitchen environment.
"""

__version__ = "1.0.0"
__title__ = "Crumb Coach Bake Engine"
__description__ = "Bake timeline notification and recalibration engine"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
]
