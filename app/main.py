# 📄 File: app/main.py
#
# 🧭 Purpose (Layman Explanation):
# The control center that starts the Crumb Coach bake engine: it connects to Redis, restores
# any reminders that were pending before a restart, starts the watchers, and opens the web API.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factory and entry point. The lifespan builds exactly one
# BakeNotificationEngine with production capabilities (asyncio timers, Redis durable store,
# Redis push channel) and keeps it on app.state; middleware, routers and exception handlers
# are registered here.
#
# 🔗 Dependencies:
# - FastAPI framework, uvicorn
# - app.shared.config (settings, redis)
# - app.modules.bake_timeline (engine and infrastructure adapters)
#
# 🔄 Connected Modules / Calls From:
# - uvicorn server startup
# - Docker container entry point

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app.api import DEFAULT_HEADERS
from app.api.middleware.error_handling import (
    ErrorHandlingMiddleware,
    create_error_response,
    handle_validation_error,
)
from app.api.middleware.logging import RequestLoggingMiddleware
from app.api.v1.router import api_v1_router
from app.modules.bake_timeline.engine.engine import BakeNotificationEngine, EngineConfig
from app.modules.bake_timeline.infrastructure.platform import SystemTimezoneResolver
from app.modules.bake_timeline.infrastructure.push_channel import RedisPushChannel
from app.modules.bake_timeline.infrastructure.redis_store import RedisDurableStore
from app.modules.bake_timeline.infrastructure.timers import AsyncioTimerPrimitive, SystemClock
from app.shared.config.redis import RedisConfig
from app.shared.config.settings import get_settings
from app.shared.core.event_bus import UIEvent
from app.shared.core.exceptions import CrumbCoachException
from app.shared.utils.logging import (
    get_logger,
    log_shutdown_event,
    log_startup_event,
    setup_logging,
)

settings = get_settings()

setup_logging()
logger = get_logger(__name__)


def _log_ui_event(event: UIEvent) -> None:
    logger.log_business_event(
        event.event_type,
        f"Engine event {event.event_type}",
        entity_id=event.payload.get("stepId"),
        entity_type="bake_step",
        extra={"payload": event.payload},
    )


def build_engine(redis_config: RedisConfig) -> BakeNotificationEngine:
    """Construct the notification engine with production capabilities."""
    redis_client = redis_config.create_redis_client()

    engine = BakeNotificationEngine(
        clock=SystemClock(),
        timer=AsyncioTimerPrimitive(asyncio.get_running_loop()),
        store=RedisDurableStore(redis_client),
        channel=RedisPushChannel(
            redis_client,
            channel_name=settings.PUSH_GATEWAY_CHANNEL,
            permission=settings.PUSH_PERMISSION_GRANTED,
        ),
        resolver=SystemTimezoneResolver(),
        config=EngineConfig.from_settings(settings),
    )
    engine.event_bus.subscribe(_log_ui_event)
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup builds the engine (which reconciles persisted alarms before any
    request is served) and starts its monitors; shutdown cancels timers but
    keeps the durable alarm records for the next start.
    """
    logger.info("🍞 Crumb Coach engine starting up...")
    log_startup_event(settings.APP_NAME, settings.APP_VERSION, {"environment": settings.ENVIRONMENT})

    redis_config = RedisConfig(settings)
    app.state.redis_config = redis_config

    engine = build_engine(redis_config)
    logger.info(
        "✅ Notification engine constructed",
        extra={"reconciliation": engine.last_reconciliation.summary()},
    )

    engine.start_monitors()
    app.state.engine = engine
    logger.info("✅ Crumb Coach engine startup complete")

    try:
        yield
    finally:
        logger.info("🔄 Crumb Coach engine shutting down...")
        engine.shutdown()
        app.state.engine = None
        redis_config.close_connections()
        log_shutdown_event(settings.APP_NAME)


def create_application() -> FastAPI:
    """
    Application factory function.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    # =========================================================================
    # MIDDLEWARE CONFIGURATION
    # =========================================================================

    if not settings.is_testing:
        app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Error handling middleware (added last so it wraps everything)
    app.add_middleware(ErrorHandlingMiddleware)

    # =========================================================================
    # ROUTER REGISTRATION
    # =========================================================================

    app.include_router(api_v1_router, prefix="/api/v1")

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================

    @app.exception_handler(CrumbCoachException)
    async def crumbcoach_exception_handler(request: Request, exc: CrumbCoachException) -> JSONResponse:
        """Handle Crumb Coach application exceptions."""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}", extra={"details": exc.details})
        return create_error_response(
            request,
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return handle_validation_error(request, exc)

    @app.middleware("http")
    async def api_headers_middleware(request: Request, call_next):
        response: Response = await call_next(request)
        for header, value in DEFAULT_HEADERS.items():
            response.headers[header] = value
        return response

    # =========================================================================
    # ROOT ENDPOINTS
    # =========================================================================

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": settings.APP_DESCRIPTION,
            "docs_url": "/docs" if settings.DEBUG else None,
            "health_check": "/api/v1/health",
            "api_base": "/api/v1",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app


app = create_application()


def main():
    """Run the application in development."""
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD and settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
