# 📄 File: app/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# Health check endpoints that tell us whether the reminder engine, Redis and the database
# are working, like a quick checkup for the service.
# 🧪 Purpose (Technical Summary):
# Basic, detailed, liveness and readiness probes covering the notification engine on
# app.state, the Redis durable store and the Supabase storage collaborator.
# 🔗 Dependencies:
# FastAPI, app.shared.config (settings, redis, supabase), datetime
# 🔄 Connected Modules / Calls From:
# app.api.v1.router, monitoring systems, load balancers

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.shared.config.settings import get_settings
from app.shared.config.supabase import get_supabase_manager

logger = logging.getLogger(__name__)

health_router = APIRouter()

_app_start_time = datetime.now(timezone.utc)


@health_router.get(
    "/health",
    summary="Basic Health Check",
    description="Basic health check endpoint for load balancers and monitoring",
)
async def health_check() -> JSONResponse:
    settings = get_settings()
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "crumbcoach-api",
            "version": settings.APP_VERSION,
        },
    )


@health_router.get(
    "/health/detailed",
    summary="Detailed Health Check",
    description="Health of the notification engine, Redis and Supabase",
)
async def detailed_health_check(request: Request) -> JSONResponse:
    """
    Comprehensive health check.

    Checks:
    - Notification engine (constructed, monitors running, outstanding alarms)
    - Redis durable store connectivity
    - Supabase storage connectivity
    """
    overall_status = "healthy"
    components: Dict[str, Any] = {}

    components["engine"] = _engine_health(request)
    if components["engine"]["status"] != "healthy":
        overall_status = "degraded"

    redis_config = getattr(request.app.state, "redis_config", None)
    if redis_config is None:
        components["redis"] = {"status": "unavailable"}
        overall_status = "degraded"
    else:
        components["redis"] = await asyncio.to_thread(redis_config.health_check)
        if components["redis"]["status"] != "healthy":
            overall_status = "degraded"

    try:
        supabase_health = await asyncio.to_thread(get_supabase_manager().health_check)
        components["database"] = {
            "status": "healthy" if supabase_health["database_service"] else "unhealthy",
            "error": supabase_health.get("error"),
        }
    except ConnectionError as e:
        components["database"] = {"status": "unhealthy", "error": str(e)}
    if components["database"]["status"] != "healthy":
        overall_status = "degraded"

    return JSONResponse(
        status_code=200 if overall_status == "healthy" else 503,
        content={
            "status": overall_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": int((datetime.now(timezone.utc) - _app_start_time).total_seconds()),
            "components": components,
        },
    )


@health_router.get("/health/live", summary="Liveness Probe")
async def liveness_probe() -> Dict[str, str]:
    return {"status": "alive"}


@health_router.get("/health/ready", summary="Readiness Probe")
async def readiness_probe(request: Request) -> JSONResponse:
    engine_health = _engine_health(request)
    ready = engine_health["status"] == "healthy"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "engine": engine_health},
    )


def _engine_health(request: Request) -> Dict[str, Any]:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return {"status": "not_started"}

    return {
        "status": "healthy" if engine.monitors_running else "degraded",
        "monitors_running": engine.monitors_running,
        "scheduled_steps": len(engine.get_scheduled_alarms()),
        "last_reconciliation": engine.last_reconciliation.summary(),
    }
