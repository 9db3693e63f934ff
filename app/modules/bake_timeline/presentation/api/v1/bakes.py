# 📄 File: app/modules/bake_timeline/presentation/api/v1/bakes.py
# 🧭 Purpose (Layman Explanation):
# Web endpoints that move a bake's finish time based on the kitchen climate and show how
# each step's duration changes under the current conditions.
# 🧪 Purpose (Technical Summary):
# FastAPI routes for bake recalibration (POST /bakes/{id}/recalibrate) and per-step
# environmental adjustments (POST /timeline/adjustments). Domain exceptions propagate to
# the application exception handler (404 for unknown bakes, 422 for an unknown current
# step, 500 for storage failures).
# 🔗 Dependencies:
# FastAPI, presentation.dependencies, presentation schemas, domain services
# 🔄 Connected Modules / Calls From:
# app.api.v1.router (router inclusion), Crumb Coach client app

"""
Bake Endpoints

Endpoints:
- POST /bakes/{bake_id}/recalibrate: Recompute the estimated end time from the latest sensor reading
- POST /timeline/adjustments: Per-step duration adjustments for given conditions
"""

import logging

from fastapi import APIRouter, Depends, status

from app.modules.bake_timeline.domain.services.recalibration_service import RecalibrationService
from app.modules.bake_timeline.domain.services.step_adjustment_service import (
    EnvironmentalConditions,
    StepAdjustmentCalculator,
    step_key,
)
from app.modules.bake_timeline.presentation.api.schemas.bake_schemas import (
    BakeResponse,
    StepAdjustmentRequest,
    StepAdjustmentResponse,
    StepAdjustmentSchema,
    TimelineStepSchema,
)
from app.modules.bake_timeline.presentation.dependencies import (
    get_recalibration_service,
    get_step_adjustment_calculator,
)
from app.shared.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

bakes_router = APIRouter()


@bakes_router.post(
    "/bakes/{bake_id}/recalibrate",
    response_model=BakeResponse,
    status_code=status.HTTP_200_OK,
    summary="Recalibrate a bake",
    description="Recompute the bake's estimated end time from the latest temperature and humidity reading",
    responses={
        200: {"description": "Updated bake with the appended adjustment entry"},
        404: {"description": "Bake not found"},
        500: {"description": "Storage failure"},
    },
)
async def recalibrate_bake(
    bake_id: str,
    service: RecalibrationService = Depends(get_recalibration_service),
) -> BakeResponse:
    """
    Recalibrate a bake's timeline.

    A missing or malformed sensor reading is not an error: the neutral
    defaults apply and the history still records the attempt.
    """
    bake = await service.recalibrate(bake_id)
    return BakeResponse.from_domain(bake)


@bakes_router.post(
    "/timeline/adjustments",
    response_model=StepAdjustmentResponse,
    summary="Calculate step adjustments",
    description="Adjust environment-sensitive step durations for the given conditions",
)
async def calculate_step_adjustments(
    request: StepAdjustmentRequest,
    calculator: StepAdjustmentCalculator = Depends(get_step_adjustment_calculator),
) -> StepAdjustmentResponse:
    steps = [s.to_domain() for s in request.steps]
    conditions = EnvironmentalConditions(**request.conditions.model_dump())

    adjustments = calculator.calculate_adjustments(conditions, steps)
    adjusted_steps = calculator.apply_adjustments(steps, adjustments)

    current = None
    if request.current_step_id is not None:
        current = next((s for s in steps if step_key(s) == request.current_step_id), None)
        if current is None:
            raise ValidationError(
                "Current step is not part of the timeline",
                field="currentStepId",
                value=request.current_step_id,
            )

    return StepAdjustmentResponse(
        adjustments=[StepAdjustmentSchema.from_domain(a) for a in adjustments],
        adjusted_steps=[TimelineStepSchema.from_domain(s) for s in adjusted_steps],
        original_total_minutes=calculator.total_duration(steps),
        adjusted_total_minutes=calculator.total_duration(adjusted_steps),
        recommendations=calculator.recommendations(conditions, current),
    )
