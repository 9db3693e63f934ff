# 📄 File: app/modules/bake_timeline/engine/timezone_monitor.py
# 🧭 Purpose (Layman Explanation):
# Notices when the baker's timezone changes (travel, daylight-saving confusion) and warns
# them if they have upcoming bake alarms, since those were set for the old local time.
# 🧪 Purpose (Technical Summary):
# Periodic (5 min) and foreground-triggered (1 s debounce) poll of the resolved IANA zone
# id; on change persists {from, to, detectedAt}, dispatches a high-priority timezone_change
# warning and emits timezone_change_detected when active future records exist.
# 🔗 Dependencies:
# engine.capabilities, engine.dispatcher, shared.core.event_bus, domain models, json
# 🔄 Connected Modules / Calls From:
# engine.engine (start_monitors, on_foreground)

import json
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from app.shared.core.event_bus import EventBus

from ..domain.models.notification import FireEvent, FireKind, ScheduledNotification
from . import ui_events
from .capabilities import Clock, DurableStore, TimerPrimitive, TimezoneResolver

logger = logging.getLogger(__name__)

TIMEZONE_CHANGE_STEP_ID = "timezone-change"

RecordsProvider = Callable[[datetime], List[ScheduledNotification]]


class TimezoneMonitor:
    """
    Watches the resolved timezone id.

    Only raises status events. Scheduled alarms are absolute instants and
    are never moved or cancelled here.
    """

    def __init__(
        self,
        clock: Clock,
        timer: Optional[TimerPrimitive],
        store: Optional[DurableStore],
        resolver: Optional[TimezoneResolver],
        event_bus: EventBus,
        dispatcher,
        records_provider: RecordsProvider,
        state_key: str = "crumbcoach:timezone",
        poll_interval_ms: int = 300_000,
        foreground_debounce_ms: int = 1_000,
    ):
        self.clock = clock
        self.timer = timer
        self.store = store
        self.resolver = resolver
        self.event_bus = event_bus
        self.dispatcher = dispatcher
        self.records_provider = records_provider
        self.state_key = state_key
        self.poll_interval_ms = poll_interval_ms
        self.foreground_debounce_ms = foreground_debounce_ms

        self._lock = threading.Lock()
        self._last_zone: Optional[str] = None
        self._last_change: Optional[Dict[str, str]] = None
        self._poll_handle: Any = None
        self._foreground_handle: Any = None
        self._running = False

    @property
    def last_zone(self) -> Optional[str]:
        return self._last_zone

    @property
    def last_change(self) -> Optional[Dict[str, str]]:
        return self._last_change

    def start(self) -> None:
        """
        Load the last known zone and begin polling.

        A zone that changed while the process was down is reported by the
        first check.
        """
        self._running = True
        stored = self._load_state()
        if stored.get("lastZone"):
            self._last_zone = stored["lastZone"]
            self._last_change = stored.get("lastChange")
            self.check()
        else:
            self._last_zone = self._resolve()
            self._save_state()

        self._schedule_poll()

    def stop(self) -> None:
        self._running = False
        if self.timer is None:
            return
        with self._lock:
            for handle in (self._poll_handle, self._foreground_handle):
                if handle is not None:
                    self.timer.cancel(handle)
            self._poll_handle = None
            self._foreground_handle = None

    def on_foreground(self) -> None:
        """App returned to the foreground: check again after the debounce delay."""
        if self.timer is None:
            self.check()
            return
        with self._lock:
            if self._foreground_handle is not None:
                self.timer.cancel(self._foreground_handle)
            self._foreground_handle = self.timer.schedule(self.foreground_debounce_ms, self._foreground_check)

    def check(self) -> Optional[Dict[str, str]]:
        """
        Compare the resolved zone with the last known one.

        Returns:
            Optional[Dict[str, str]]: The change record, or None when unchanged
        """
        current = self._resolve()
        if current is None or current == self._last_zone:
            return None

        now = self.clock.now()
        change = {"from": self._last_zone, "to": current, "detectedAt": now.isoformat()}
        self._last_zone = current
        self._last_change = change
        self._save_state()

        active = self.records_provider(now)
        logger.info(f"Timezone changed from {change['from']} to {current}, {len(active)} active alarms")

        if active:
            self._warn(change, active, now)
        return change

    def _warn(self, change: Dict[str, str], active: List[ScheduledNotification], now: datetime) -> None:
        message = (
            f"Your timezone changed from {change['from']} to {change['to']}. "
            f"{len(active)} scheduled bake alarm(s) may need review."
        )
        event = FireEvent(
            kind=FireKind.TIMEZONE_CHANGE,
            step_id=TIMEZONE_CHANGE_STEP_ID,
            step_name="Timezone change",
            bake_id=None,
            scheduled_time=now,
            message=message,
        )
        try:
            self.dispatcher.dispatch(event)
        except Exception as e:
            logger.error(f"Timezone warning dispatch failed: {e}", exc_info=True)

        self.event_bus.emit(
            ui_events.TIMEZONE_CHANGE_DETECTED,
            {
                **change,
                "message": message,
                "activeAlarms": [r.model_dump(mode="json") for r in active],
            },
        )

    def _foreground_check(self) -> None:
        with self._lock:
            self._foreground_handle = None
        self.check()

    def _poll(self) -> None:
        if not self._running:
            return
        self.check()
        self._schedule_poll()

    def _schedule_poll(self) -> None:
        if self.timer is None:
            logger.warning("No timer available, timezone will only be checked on foreground")
            return
        with self._lock:
            self._poll_handle = self.timer.schedule(self.poll_interval_ms, self._poll)

    def _resolve(self) -> Optional[str]:
        if self.resolver is None:
            return None
        try:
            return self.resolver.current_zone()
        except Exception as e:
            logger.warning(f"Timezone resolution failed: {e}")
            return None

    def _load_state(self) -> Dict[str, Any]:
        if self.store is None:
            return {}
        try:
            raw = self.store.get(self.state_key)
            state = json.loads(raw) if raw else {}
        except Exception as e:
            logger.error(f"Failed to read timezone state: {e}")
            return {}
        return state if isinstance(state, dict) else {}

    def _save_state(self) -> None:
        if self.store is None:
            return
        state = {"lastZone": self._last_zone, "lastChange": self._last_change}
        try:
            self.store.set(self.state_key, json.dumps(state))
        except Exception as e:
            logger.error(f"Failed to persist timezone state: {e}")
