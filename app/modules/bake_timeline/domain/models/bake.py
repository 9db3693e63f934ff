# 📄 File: app/modules/bake_timeline/domain/models/bake.py
# 🧭 Purpose (Layman Explanation):
# Describes a bake in progress, its steps, the kitchen temperature/humidity readings,
# and the history of every time the finish time was adjusted.
# 🧪 Purpose (Technical Summary):
# Pydantic domain models for the externally-owned Bake aggregate, its append-only
# timeline adjustment log, sensor readings and timeline steps.
# 🔗 Dependencies:
# pydantic, datetime, enum
# 🔄 Connected Modules / Calls From:
# domain.services.recalibration_service, domain.services.step_adjustment_service,
# infrastructure.database repositories, presentation schemas

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BakeStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class StepStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class TimelineAdjustment(BaseModel):
    """One entry of a bake's append-only adjustment history."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    adjustment_minutes: float
    reason: str


class SensorReading(BaseModel):
    """
    Latest kitchen reading.

    Temperature is stored in tenths of a degree Celsius, humidity in percent.
    Either may be absent.
    """

    temperature: Optional[int] = None
    humidity: Optional[int] = None
    timestamp: Optional[datetime] = None

    @property
    def temperature_celsius(self) -> Optional[float]:
        if self.temperature is None:
            return None
        return self.temperature / 10


class TimelineStep(BaseModel):
    """A step of a bake as provided by the caller."""

    id: Optional[str] = None
    step_index: int = 0
    name: str
    estimated_duration_minutes: int
    optimal_temperature: Optional[float] = None
    optimal_humidity: Optional[float] = None
    status: StepStatus = StepStatus.PENDING

    @property
    def is_environment_sensitive(self) -> bool:
        return bool(self.optimal_temperature) or bool(self.optimal_humidity)


class Bake(BaseModel):
    """
    Bake aggregate as owned by the storage collaborator.

    The engine reads it and only ever appends to ``timeline_adjustments``.
    """

    id: str
    name: Optional[str] = None
    status: BakeStatus = BakeStatus.ACTIVE
    current_step: int = 0
    start_time: Optional[datetime] = None
    estimated_end_time: Optional[datetime] = None
    timeline_adjustments: List[TimelineAdjustment] = Field(default_factory=list)

    @field_validator("timeline_adjustments", mode="before")
    @classmethod
    def default_adjustments(cls, v):
        """jsonb column is nullable in storage."""
        return v or []

    def with_adjustment(self, new_end: datetime, entry: TimelineAdjustment) -> "Bake":
        """Return a copy with a new estimated end and one more history entry."""
        return self.model_copy(
            update={
                "estimated_end_time": new_end,
                "timeline_adjustments": [*self.timeline_adjustments, entry],
            }
        )
