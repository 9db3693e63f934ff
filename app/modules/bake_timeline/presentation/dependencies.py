# 📄 File: app/modules/bake_timeline/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Hands each bake endpoint the tools it needs: the running reminder engine, the bake and
# sensor storage, and the recalibration calculator.
# 🧪 Purpose (Technical Summary):
# FastAPI dependency providers for the bake timeline module. The engine comes from
# app.state (built by the lifespan); repositories wrap the shared Supabase client.
# Tests replace these through app.dependency_overrides.
# 🔗 Dependencies:
# FastAPI, shared config (settings, supabase), infrastructure repositories, domain services
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.bakes, presentation.api.v1.alarms

import logging

from fastapi import Depends, Request

from app.modules.bake_timeline.domain.repositories.bake_repository import BakeRepository
from app.modules.bake_timeline.domain.repositories.sensor_repository import SensorRepository
from app.modules.bake_timeline.domain.services.recalibration_service import (
    EnvironmentalRecalibrator,
    RecalibrationConstants,
    RecalibrationService,
)
from app.modules.bake_timeline.domain.services.step_adjustment_service import StepAdjustmentCalculator
from app.modules.bake_timeline.engine.engine import BakeNotificationEngine
from app.modules.bake_timeline.infrastructure.database import (
    SupabaseBakeRepository,
    SupabaseSensorRepository,
)
from app.shared.config.settings import get_settings
from app.shared.config.supabase import get_supabase_client
from app.shared.core.exceptions import EngineNotReadyError

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> BakeNotificationEngine:
    """
    Get the notification engine built at application startup.

    Raises:
        EngineNotReadyError: If the lifespan has not constructed it
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise EngineNotReadyError()
    return engine


def get_bake_repository() -> BakeRepository:
    settings = get_settings()
    return SupabaseBakeRepository(get_supabase_client(), table=settings.SUPABASE_BAKES_TABLE)


def get_sensor_repository() -> SensorRepository:
    settings = get_settings()
    return SupabaseSensorRepository(get_supabase_client(), table=settings.SUPABASE_SENSOR_TABLE)


def get_recalibrator() -> EnvironmentalRecalibrator:
    return EnvironmentalRecalibrator(RecalibrationConstants.from_settings(get_settings()))


def get_recalibration_service(
    bake_repository: BakeRepository = Depends(get_bake_repository),
    sensor_repository: SensorRepository = Depends(get_sensor_repository),
    recalibrator: EnvironmentalRecalibrator = Depends(get_recalibrator),
) -> RecalibrationService:
    return RecalibrationService(bake_repository, sensor_repository, recalibrator)


def get_step_adjustment_calculator() -> StepAdjustmentCalculator:
    return StepAdjustmentCalculator()
