"""
Do-not-disturb detection.

There is no platform API for the device's focus state, so this is a
heuristic: quiet hours in the baker's local time (when notifications are
permitted) or the standalone/installed-app signal.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.shared.core.event_bus import EventBus

from . import ui_events
from .capabilities import (
    Clock,
    NotificationChannel,
    StandaloneSignal,
    TimerPrimitive,
    TimezoneResolver,
)

logger = logging.getLogger(__name__)

REASON_QUIET_HOURS = "quiet-hours"
REASON_PLATFORM_SIGNAL = "platform-signal"
REASON_UNKNOWN = "unknown"


class DoNotDisturbMonitor:
    def __init__(
        self,
        clock: Clock,
        timer: Optional[TimerPrimitive],
        event_bus: EventBus,
        channel: Optional[NotificationChannel] = None,
        resolver: Optional[TimezoneResolver] = None,
        standalone_signal: Optional[StandaloneSignal] = None,
        poll_interval_ms: int = 30_000,
        quiet_hours_start: int = 21,
        quiet_hours_end: int = 7,
    ):
        self.clock = clock
        self.timer = timer
        self.event_bus = event_bus
        self.channel = channel
        self.resolver = resolver
        self.standalone_signal = standalone_signal
        self.poll_interval_ms = poll_interval_ms
        self.quiet_hours_start = quiet_hours_start
        self.quiet_hours_end = quiet_hours_end

        self._lock = threading.Lock()
        self._is_active = False
        self._reason = REASON_UNKNOWN
        self._handle: Any = None
        self._running = False

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def reason(self) -> str:
        return self._reason

    def start(self) -> None:
        self._running = True
        self.check()
        self._schedule_next()

    def stop(self) -> None:
        self._running = False
        with self._lock:
            if self._handle is not None and self.timer is not None:
                self.timer.cancel(self._handle)
            self._handle = None

    def check(self) -> bool:
        """Re-evaluate and emit ``dnd_status_changed`` on a transition."""
        active, reason = self._evaluate()

        with self._lock:
            changed = active != self._is_active
            self._is_active = active
            self._reason = reason

        if changed:
            logger.info(f"Do-not-disturb {'on' if active else 'off'} ({reason})")
            self.event_bus.emit(ui_events.DND_STATUS_CHANGED, {"isActive": active, "reason": reason})
        return active

    def in_quiet_hours(self, local_time: datetime) -> bool:
        hour = local_time.hour
        if self.quiet_hours_start > self.quiet_hours_end:
            return hour >= self.quiet_hours_start or hour < self.quiet_hours_end
        return self.quiet_hours_start <= hour < self.quiet_hours_end

    def _evaluate(self):
        if self.in_quiet_hours(self._local_now()) and self._permission_granted():
            return True, REASON_QUIET_HOURS
        if self._standalone():
            return True, REASON_PLATFORM_SIGNAL
        return False, REASON_UNKNOWN

    def _local_now(self) -> datetime:
        now = self.clock.now()
        if self.resolver is not None:
            try:
                return now.astimezone(ZoneInfo(self.resolver.current_zone()))
            except (ZoneInfoNotFoundError, ValueError) as e:
                logger.warning(f"Unknown timezone, using system local time: {e}")
            except Exception as e:
                logger.warning(f"Timezone resolver failed, using system local time: {e}")
        return now.astimezone()

    def _permission_granted(self) -> bool:
        if self.channel is None:
            return False
        try:
            return bool(self.channel.permission_granted())
        except Exception as e:
            logger.warning(f"Permission check failed: {e}")
            return False

    def _standalone(self) -> bool:
        if self.standalone_signal is None:
            return False
        try:
            return bool(self.standalone_signal())
        except Exception as e:
            logger.warning(f"Standalone signal failed: {e}")
            return False

    def _schedule_next(self) -> None:
        if self.timer is None:
            logger.warning("No timer available, do-not-disturb status will not be polled")
            return
        with self._lock:
            self._handle = self.timer.schedule(self.poll_interval_ms, self._poll)

    def _poll(self) -> None:
        if not self._running:
            return
        self.check()
        self._schedule_next()
