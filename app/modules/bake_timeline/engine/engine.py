# 📄 File: app/modules/bake_timeline/engine/engine.py
# 🧭 Purpose (Layman Explanation):
# Puts the whole reminder system together: the scheduler, the delivery logic, the
# restart check and the timezone and quiet-hours watchers, all sharing the same clock,
# storage and notification channel.
# 🧪 Purpose (Technical Summary):
# Composition root for one engine instance. Capabilities are injected explicitly (no
# module-level singleton); construction loads persisted intent and runs reconciliation.
# 🔗 Dependencies:
# engine components, shared.core.event_bus, shared.config.settings
# 🔄 Connected Modules / Calls From:
# app.main (FastAPI lifespan), presentation.dependencies, tests

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from app.shared.config.settings import Settings
from app.shared.core.event_bus import EventBus

from ..domain.models.notification import ScheduledNotification
from .capabilities import (
    AudioAlert,
    Clock,
    DurableStore,
    NotificationChannel,
    StandaloneSignal,
    TimerPrimitive,
    TimezoneResolver,
)
from .dispatcher import NotificationDispatcher
from .dnd_monitor import DoNotDisturbMonitor
from .reconciliation import ReconciliationEngine, ReconciliationResult
from .scheduler import NotificationScheduler, ScheduleOptions
from .timezone_monitor import TimezoneMonitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    notification_store_key: str = "crumbcoach:scheduled-notifications"
    timezone_state_key: str = "crumbcoach:timezone"
    debounce_ms: int = 500
    heads_up_lead_minutes: int = 5
    missed_check_minutes: int = 10
    adaptive_check_interval_minutes: int = 30
    reconciliation_window_minutes: int = 30
    timezone_poll_interval_ms: int = 300_000
    foreground_debounce_ms: int = 1_000
    dnd_poll_interval_ms: int = 30_000
    quiet_hours_start: int = 21
    quiet_hours_end: int = 7
    notify_low_priority_sound: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            notification_store_key=settings.NOTIFICATION_STORE_KEY,
            timezone_state_key=settings.TIMEZONE_STATE_KEY,
            debounce_ms=settings.SCHEDULE_DEBOUNCE_MS,
            heads_up_lead_minutes=settings.HEADS_UP_LEAD_MINUTES,
            missed_check_minutes=settings.MISSED_CHECK_MINUTES,
            adaptive_check_interval_minutes=settings.ADAPTIVE_CHECK_INTERVAL_MINUTES,
            reconciliation_window_minutes=settings.RECONCILIATION_WINDOW_MINUTES,
            timezone_poll_interval_ms=settings.TIMEZONE_POLL_INTERVAL_MS,
            foreground_debounce_ms=settings.FOREGROUND_DEBOUNCE_MS,
            dnd_poll_interval_ms=settings.DND_POLL_INTERVAL_MS,
            quiet_hours_start=settings.QUIET_HOURS_START,
            quiet_hours_end=settings.QUIET_HOURS_END,
            notify_low_priority_sound=settings.NOTIFY_LOW_PRIORITY_SOUND,
        )


class BakeNotificationEngine:
    """
    One bake notification engine instance.

    Construction is synchronous and runs reconciliation before returning, so
    missed alarms are delivered before any new scheduling happens. Monitors
    only start polling once ``start_monitors`` is called.
    """

    def __init__(
        self,
        clock: Clock,
        timer: Optional[TimerPrimitive],
        store: Optional[DurableStore],
        channel: Optional[NotificationChannel] = None,
        audio: Optional[AudioAlert] = None,
        resolver: Optional[TimezoneResolver] = None,
        standalone_signal: Optional[StandaloneSignal] = None,
        event_bus: Optional[EventBus] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig()
        self.clock = clock
        self.event_bus = event_bus or EventBus()

        self.dnd_monitor = DoNotDisturbMonitor(
            clock=clock,
            timer=timer,
            event_bus=self.event_bus,
            channel=channel,
            resolver=resolver,
            standalone_signal=standalone_signal,
            poll_interval_ms=self.config.dnd_poll_interval_ms,
            quiet_hours_start=self.config.quiet_hours_start,
            quiet_hours_end=self.config.quiet_hours_end,
        )
        self.dispatcher = NotificationDispatcher(
            event_bus=self.event_bus,
            dnd_monitor=self.dnd_monitor,
            channel=channel,
            audio=audio,
            notify_low_priority_sound=self.config.notify_low_priority_sound,
        )
        self.scheduler = NotificationScheduler(
            clock=clock,
            timer=timer,
            store=store,
            dispatcher=self.dispatcher,
            channel=channel,
            store_key=self.config.notification_store_key,
            debounce_ms=self.config.debounce_ms,
            heads_up_lead_minutes=self.config.heads_up_lead_minutes,
            missed_check_minutes=self.config.missed_check_minutes,
            adaptive_check_interval_minutes=self.config.adaptive_check_interval_minutes,
        )
        self.timezone_monitor = TimezoneMonitor(
            clock=clock,
            timer=timer,
            store=store,
            resolver=resolver,
            event_bus=self.event_bus,
            dispatcher=self.dispatcher,
            records_provider=self.scheduler.get_active_records,
            state_key=self.config.timezone_state_key,
            poll_interval_ms=self.config.timezone_poll_interval_ms,
            foreground_debounce_ms=self.config.foreground_debounce_ms,
        )
        self.reconciliation = ReconciliationEngine(
            clock=clock,
            scheduler=self.scheduler,
            dispatcher=self.dispatcher,
            event_bus=self.event_bus,
            window_minutes=self.config.reconciliation_window_minutes,
        )

        self.scheduler.load_persisted_records()
        # Missed alarms replayed below must already see quiet hours.
        self.dnd_monitor.check()
        self.last_reconciliation: ReconciliationResult = self.reconciliation.run()
        self._monitors_running = False

    @property
    def monitors_running(self) -> bool:
        return self._monitors_running

    def start_monitors(self) -> None:
        if self._monitors_running:
            return
        self.dnd_monitor.start()
        self.timezone_monitor.start()
        self._monitors_running = True
        logger.info("Notification engine monitors started")

    def shutdown(self) -> None:
        """Stop polling and cancel timers. Durable intent stays for the next start."""
        self.dnd_monitor.stop()
        self.timezone_monitor.stop()
        self.scheduler.clear_all_alarms()
        self._monitors_running = False
        logger.info("Notification engine shut down")

    # Scheduler surface

    def schedule_step_alarms(
        self,
        step_id: str,
        step_name: str,
        start_time: datetime,
        duration_minutes: int,
        bake_id: Optional[str] = None,
        options: Optional[ScheduleOptions] = None,
    ) -> bool:
        return self.scheduler.schedule_step_alarms(
            step_id, step_name, start_time, duration_minutes, bake_id, options
        )

    def clear_alarm(self, step_id: str) -> None:
        self.scheduler.clear_alarm(step_id)

    def clear_all_alarms(self) -> None:
        self.scheduler.clear_all_alarms()

    def acknowledge_step(self, step_id: str) -> bool:
        return self.scheduler.acknowledge_step(step_id)

    def get_scheduled_alarms(self) -> List[str]:
        return self.scheduler.get_scheduled_alarms()

    def get_active_records(self) -> List[ScheduledNotification]:
        return self.scheduler.get_active_records()

    def on_foreground(self) -> None:
        self.timezone_monitor.on_foreground()
        self.dnd_monitor.check()
