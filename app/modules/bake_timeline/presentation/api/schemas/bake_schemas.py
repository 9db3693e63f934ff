# 📄 File: app/modules/bake_timeline/presentation/api/schemas/bake_schemas.py
# 🧭 Purpose (Layman Explanation):
# Defines what the app sends and receives when recalibrating a bake or asking how the
# current kitchen conditions change each step's duration.
# 🧪 Purpose (Technical Summary):
# Pydantic request/response schemas (camelCase on the wire) for the recalibration and
# step adjustment endpoints.
# 🔗 Dependencies:
# pydantic, domain models, domain services
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.bakes

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.modules.bake_timeline.domain.models.bake import Bake, StepStatus, TimelineStep
from app.modules.bake_timeline.domain.services.step_adjustment_service import StepAdjustment


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimelineAdjustmentResponse(CamelModel):
    timestamp: datetime
    adjustment_minutes: float
    reason: str


class BakeResponse(CamelModel):
    """Bake as returned after recalibration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "bake-123",
                "name": "Country loaf",
                "status": "active",
                "currentStep": 1,
                "startTime": "2026-10-19T08:00:00Z",
                "estimatedEndTime": "2026-10-19T16:18:00Z",
                "timelineAdjustments": [
                    {
                        "timestamp": "2026-10-19T14:00:00Z",
                        "adjustmentMinutes": 18.0,
                        "reason": "Sensor reading 20.0°C, 65% humidity: cold (below 22°C) +30.0 min; "
                                  "humidity x0.90 on 120 min remaining -12.0 min (total +18.0 min)",
                    }
                ],
            }
        },
    )

    id: str
    name: Optional[str] = None
    status: str
    current_step: int
    start_time: Optional[datetime] = None
    estimated_end_time: Optional[datetime] = None
    timeline_adjustments: List[TimelineAdjustmentResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, bake: Bake) -> "BakeResponse":
        return cls(
            id=bake.id,
            name=bake.name,
            status=bake.status.value,
            current_step=bake.current_step,
            start_time=bake.start_time,
            estimated_end_time=bake.estimated_end_time,
            timeline_adjustments=[
                TimelineAdjustmentResponse(
                    timestamp=entry.timestamp,
                    adjustment_minutes=entry.adjustment_minutes,
                    reason=entry.reason,
                )
                for entry in bake.timeline_adjustments
            ],
        )


class TimelineStepSchema(CamelModel):
    id: Optional[str] = None
    step_index: int = 0
    name: str = Field(..., min_length=1)
    estimated_duration_minutes: int = Field(..., ge=0)
    optimal_temperature: Optional[float] = None
    optimal_humidity: Optional[float] = None
    status: StepStatus = StepStatus.PENDING

    def to_domain(self) -> TimelineStep:
        return TimelineStep(**self.model_dump())

    @classmethod
    def from_domain(cls, step: TimelineStep) -> "TimelineStepSchema":
        return cls(**step.model_dump())


class ConditionsSchema(CamelModel):
    temperature: float = Field(..., description="Current temperature in °C")
    humidity: float = Field(..., ge=0, le=100, description="Current relative humidity in %")
    altitude: Optional[float] = Field(None, description="Altitude in metres")


class StepAdjustmentRequest(CamelModel):
    steps: List[TimelineStepSchema] = Field(..., min_length=1)
    conditions: ConditionsSchema
    current_step_id: Optional[str] = Field(None, description="Step to produce recommendations for")


class StepAdjustmentSchema(CamelModel):
    step_id: str
    original_duration: int
    adjusted_duration: int
    factors: List[str]
    timestamp: datetime

    @classmethod
    def from_domain(cls, adjustment: StepAdjustment) -> "StepAdjustmentSchema":
        return cls(
            step_id=adjustment.step_key,
            original_duration=adjustment.original_duration,
            adjusted_duration=adjustment.adjusted_duration,
            factors=adjustment.factors,
            timestamp=adjustment.timestamp,
        )


class StepAdjustmentResponse(CamelModel):
    adjustments: List[StepAdjustmentSchema]
    adjusted_steps: List[TimelineStepSchema]
    original_total_minutes: int
    adjusted_total_minutes: int
    recommendations: List[str]
