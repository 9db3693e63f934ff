# 📄 File: app/api/v1/router.py
# 🧭 Purpose (Layman Explanation):
# Acts like a traffic director for all version 1 requests, sending bake requests to the
# bake handlers and alarm requests to the alarm handlers.
# 🧪 Purpose (Technical Summary):
# Main API v1 router aggregation that combines the health router and the bake timeline
# module routers and exposes the v1 info endpoint.
# 🔗 Dependencies:
# FastAPI, app.api.v1.health, app.modules.bake_timeline.presentation.api.v1.*
# 🔄 Connected Modules / Calls From:
# app.main

import logging
from typing import Any, Dict

from fastapi import APIRouter

from app.modules.bake_timeline.presentation.api.v1 import alarms_router, bakes_router

from . import API_TAGS, ROUTE_PREFIXES, get_api_info
from .health import health_router

logger = logging.getLogger(__name__)

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, prefix=ROUTE_PREFIXES["health"], tags=[API_TAGS["health"]])
api_v1_router.include_router(bakes_router, prefix=ROUTE_PREFIXES["bakes"], tags=[API_TAGS["bakes"]])
api_v1_router.include_router(alarms_router, prefix=ROUTE_PREFIXES["alarms"], tags=[API_TAGS["alarms"]])


@api_v1_router.get(
    "/",
    summary="API v1 Information",
    description="Get API v1 version information and available endpoints",
    tags=["API Info"],
)
async def api_v1_info() -> Dict[str, Any]:
    return {
        **get_api_info(),
        "endpoints": {
            "health_check": "/api/v1/health",
            "detailed_health": "/api/v1/health/detailed",
            "recalibrate": "/api/v1/bakes/{bake_id}/recalibrate",
            "step_adjustments": "/api/v1/timeline/adjustments",
            "step_alarms": "/api/v1/bakes/{bake_id}/steps/{step_id}/alarms",
            "alarms": "/api/v1/alarms",
        },
    }
