# 📄 File: app/modules/bake_timeline/domain/models/notification.py
# 🧭 Purpose (Layman Explanation):
# Describes a bake reminder: which step it is for, when it should go off, and what kind
# of reminder it is (step start, bedtime, wake-up, readiness check...).
# 🧪 Purpose (Technical Summary):
# Domain models for durable scheduling intent (ScheduledNotification) and the transient
# fire events the scheduler hands to the dispatcher, plus their priority classification.
# 🔗 Dependencies:
# pydantic, dataclasses, datetime, enum
# 🔄 Connected Modules / Calls From:
# engine.scheduler, engine.dispatcher, engine.reconciliation, engine.timezone_monitor

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class NotificationType(str, Enum):
    """Durable notification types persisted as scheduling intent."""
    START = "start"
    END = "end"
    BEDTIME = "bedtime"
    WAKEUP = "wakeup"
    ADAPTIVE = "adaptive"


class FireKind(str, Enum):
    """Every kind of timed fire the engine can dispatch."""
    HEADS_UP = "heads_up"
    START = "start"
    END = "end"
    MISSED = "missed"
    BEDTIME = "bedtime"
    WAKEUP = "wakeup"
    ADAPTIVE_START = "adaptive_start"
    ADAPTIVE_CHECK = "adaptive_check"
    TIMEZONE_CHANGE = "timezone_change"


class Priority(str, Enum):
    """Delivery priority class."""
    HIGH = "high"
    LOW = "low"


PRIORITY_BY_KIND: Dict[FireKind, Priority] = {
    FireKind.START: Priority.HIGH,
    FireKind.END: Priority.HIGH,
    FireKind.MISSED: Priority.HIGH,
    FireKind.WAKEUP: Priority.HIGH,
    FireKind.ADAPTIVE_START: Priority.HIGH,
    FireKind.TIMEZONE_CHANGE: Priority.HIGH,
    FireKind.HEADS_UP: Priority.LOW,
    FireKind.BEDTIME: Priority.LOW,
    FireKind.ADAPTIVE_CHECK: Priority.LOW,
}

# Fire kinds backed by a durable record, and the record type they map to.
DURABLE_TYPE_BY_KIND: Dict[FireKind, NotificationType] = {
    FireKind.START: NotificationType.START,
    FireKind.END: NotificationType.END,
    FireKind.BEDTIME: NotificationType.BEDTIME,
    FireKind.WAKEUP: NotificationType.WAKEUP,
    FireKind.ADAPTIVE_START: NotificationType.ADAPTIVE,
}

KIND_BY_DURABLE_TYPE: Dict[NotificationType, FireKind] = {
    v: k for k, v in DURABLE_TYPE_BY_KIND.items()
}


class ScheduledNotification(BaseModel):
    """
    Durable record of scheduling intent.

    Never mutated in place: rescheduling a step replaces its records.
    Identity is ``id`` which is derived from the step and the type.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    step_id: str
    step_name: str
    scheduled_time: datetime
    type: NotificationType
    bake_id: Optional[str] = None
    is_active: bool = True
    check_interval_minutes: Optional[int] = None  # adaptive steps only

    @field_validator("scheduled_time")
    @classmethod
    def validate_aware(cls, v: datetime) -> datetime:
        """Scheduled instants are compared against an aware clock."""
        if v.tzinfo is None:
            raise ValueError("scheduled_time must be timezone-aware")
        return v

    @staticmethod
    def make_id(step_id: str, notification_type: NotificationType) -> str:
        return f"{step_id}:{notification_type.value}"

    @classmethod
    def for_event(
        cls, event: "FireEvent", check_interval_minutes: Optional[int] = None
    ) -> "ScheduledNotification":
        """Build the durable record mirroring a fire event."""
        notification_type = DURABLE_TYPE_BY_KIND[event.kind]
        return cls(
            id=cls.make_id(event.step_id, notification_type),
            step_id=event.step_id,
            step_name=event.step_name,
            scheduled_time=event.scheduled_time,
            type=notification_type,
            bake_id=event.bake_id,
            is_active=True,
            check_interval_minutes=check_interval_minutes,
        )

    def is_future_active(self, now: datetime) -> bool:
        return self.is_active and self.scheduled_time > now


@dataclass(frozen=True)
class FireEvent:
    """A single timed fire handed to the dispatcher."""
    kind: FireKind
    step_id: str
    step_name: str
    bake_id: Optional[str]
    scheduled_time: datetime
    check_count: Optional[int] = None
    late_minutes: Optional[int] = None
    message: Optional[str] = None

    @property
    def priority(self) -> Priority:
        return PRIORITY_BY_KIND[self.kind]

    @property
    def is_durable(self) -> bool:
        return self.kind in DURABLE_TYPE_BY_KIND

    @property
    def is_missed_variant(self) -> bool:
        return self.late_minutes is not None

    @classmethod
    def from_record(cls, record: ScheduledNotification) -> "FireEvent":
        return cls(
            kind=KIND_BY_DURABLE_TYPE[record.type],
            step_id=record.step_id,
            step_name=record.step_name,
            bake_id=record.bake_id,
            scheduled_time=record.scheduled_time,
        )

    def as_missed(self, late_minutes: int) -> "FireEvent":
        """The 'missed, N minutes late' variant delivered after a restart."""
        return replace(self, late_minutes=late_minutes)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.kind.value,
            "stepId": self.step_id,
            "stepName": self.step_name,
            "bakeId": self.bake_id,
            "scheduledTime": self.scheduled_time.isoformat(),
            "priority": self.priority.value,
        }
        if self.check_count is not None:
            payload["checkCount"] = self.check_count
        if self.late_minutes is not None:
            payload["lateMinutes"] = self.late_minutes
        return payload
