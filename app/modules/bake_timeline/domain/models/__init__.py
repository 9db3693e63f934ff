"""
Bake timeline domain models.
"""

from .bake import Bake, BakeStatus, SensorReading, StepStatus, TimelineAdjustment, TimelineStep
from .notification import (
    DURABLE_TYPE_BY_KIND,
    FireEvent,
    FireKind,
    NotificationType,
    Priority,
    ScheduledNotification,
)

__all__ = [
    "Bake",
    "BakeStatus",
    "SensorReading",
    "StepStatus",
    "TimelineAdjustment",
    "TimelineStep",
    "DURABLE_TYPE_BY_KIND",
    "FireEvent",
    "FireKind",
    "NotificationType",
    "Priority",
    "ScheduledNotification",
]
