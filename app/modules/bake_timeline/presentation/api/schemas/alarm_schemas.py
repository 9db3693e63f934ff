# 📄 File: app/modules/bake_timeline/presentation/api/schemas/alarm_schemas.py
# 🧭 Purpose (Layman Explanation):
# Defines the messages the app uses to set, cancel and list bake step alarms.
# 🧪 Purpose (Technical Summary):
# Pydantic request/response schemas (camelCase on the wire) for the alarm management API
# over the notification engine. Instants must be timezone-aware.
# 🔗 Dependencies:
# pydantic, domain models, engine.scheduler
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.alarms

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.modules.bake_timeline.domain.models.notification import ScheduledNotification
from app.modules.bake_timeline.engine.scheduler import ScheduleOptions


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScheduleAlarmRequest(CamelModel):
    step_name: str = Field(..., min_length=1, max_length=200)
    start_time: datetime
    duration_minutes: int = Field(..., ge=0)
    is_overnight: bool = False
    bedtime: Optional[datetime] = None
    wakeup: Optional[datetime] = None
    is_adaptive: bool = False
    adaptive_check_interval: Optional[int] = Field(None, ge=1, description="Minutes between readiness checks")
    notify_on_end: bool = False

    @field_validator("start_time", "bedtime", "wakeup")
    @classmethod
    def validate_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            raise ValueError("timestamps must include a timezone offset")
        return v

    @model_validator(mode="after")
    def validate_mode(self) -> "ScheduleAlarmRequest":
        if self.is_overnight and self.is_adaptive:
            raise ValueError("a step cannot be both overnight and adaptive")
        return self

    def to_options(self) -> ScheduleOptions:
        return ScheduleOptions(
            is_overnight=self.is_overnight,
            bedtime=self.bedtime,
            wakeup=self.wakeup,
            is_adaptive=self.is_adaptive,
            adaptive_check_interval=self.adaptive_check_interval,
            notify_on_end=self.notify_on_end,
        )


class ScheduleAlarmResponse(CamelModel):
    bake_id: str
    step_id: str
    accepted: bool
    debounce_ms: int


class AcknowledgeResponse(CamelModel):
    step_id: str
    acknowledged: bool


class ScheduledNotificationSchema(CamelModel):
    id: str
    step_id: str
    step_name: str
    scheduled_time: datetime
    type: str
    bake_id: Optional[str] = None
    is_active: bool

    @classmethod
    def from_domain(cls, record: ScheduledNotification) -> "ScheduledNotificationSchema":
        return cls(
            id=record.id,
            step_id=record.step_id,
            step_name=record.step_name,
            scheduled_time=record.scheduled_time,
            type=record.type.value,
            bake_id=record.bake_id,
            is_active=record.is_active,
        )


class AlarmStatusResponse(CamelModel):
    scheduled_steps: List[str]
    active_notifications: List[ScheduledNotificationSchema]
    dnd_active: bool
    dnd_reason: str
    timezone: Optional[str] = None


class UIEventSchema(CamelModel):
    event_id: str
    event_type: str
    payload: Dict[str, Any]
    timestamp: datetime


class UIEventListResponse(CamelModel):
    events: List[UIEventSchema]
