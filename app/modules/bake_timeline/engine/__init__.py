"""
Bake notification engine.

Timing, durable scheduling intent, delivery-channel selection and restart
reconciliation for bake step alarms.
"""

from .capabilities import (
    AudioAlert,
    Clock,
    DurableStore,
    NotificationChannel,
    StandaloneSignal,
    TimerPrimitive,
    TimezoneResolver,
)
from .dispatcher import DeliveryProfile, NotificationDispatcher
from .dnd_monitor import DoNotDisturbMonitor
from .engine import BakeNotificationEngine, EngineConfig
from .reconciliation import ReconciliationEngine, ReconciliationResult
from .scheduler import NotificationScheduler, ScheduleOptions, TimerSlot
from .timezone_monitor import TimezoneMonitor

__all__ = [
    "AudioAlert",
    "Clock",
    "DurableStore",
    "NotificationChannel",
    "StandaloneSignal",
    "TimerPrimitive",
    "TimezoneResolver",
    "DeliveryProfile",
    "NotificationDispatcher",
    "DoNotDisturbMonitor",
    "BakeNotificationEngine",
    "EngineConfig",
    "ReconciliationEngine",
    "ReconciliationResult",
    "NotificationScheduler",
    "ScheduleOptions",
    "TimerSlot",
    "TimezoneMonitor",
]
