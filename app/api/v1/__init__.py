# 📄 File: app/api/v1/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes version 1 of the Crumb Coach engine API so later versions can be added
# without breaking existing apps.
# 🧪 Purpose (Technical Summary):
# Package initialization for API version 1: version metadata, route prefixes, tags and
# the API info helper used by the v1 info endpoint.
# 🔗 Dependencies:
# typing
# 🔄 Connected Modules / Calls From:
# app.api.v1.router, app.main

"""
Crumb Coach API Version 1

Structure:
    v1/
    ├── __init__.py          # This file
    ├── router.py            # Main v1 router aggregation
    └── health.py            # Health check endpoints

Module routers (bake recalibration, step adjustments, alarms) live in
app.modules.bake_timeline.presentation.api.v1.
"""

from typing import Any, Dict

__version__ = "1.0.0"
__api_version__ = "v1"
__status__ = "stable"

API_V1_CONFIG = {
    "version": __version__,
    "api_version": __api_version__,
    "status": __status__,
    "description": "Crumb Coach bake timeline engine API",
    "features": [
        "bake_recalibration",
        "step_adjustments",
        "step_alarms",
        "restart_reconciliation",
        "timezone_monitoring",
    ],
}

# Module routers are mounted at the v1 root; their paths carry the resource names.
ROUTE_PREFIXES = {
    "health": "",
    "bakes": "",
    "alarms": "",
}

API_TAGS = {
    "health": "Health Check",
    "bakes": "Bakes",
    "alarms": "Alarms",
}


def get_api_info() -> Dict[str, Any]:
    """Get API v1 metadata."""
    return {
        **API_V1_CONFIG,
        "tags": list(API_TAGS.values()),
    }
