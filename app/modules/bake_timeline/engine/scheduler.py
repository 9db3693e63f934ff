# 📄 File: app/modules/bake_timeline/engine/scheduler.py
# 🧭 Purpose (Layman Explanation):
# Turns "the next step starts at 14:30" into the actual reminders: a heads-up a few
# minutes before, the start alarm, a nudge if the step wasn't started, bedtime and
# wake-up alarms for overnight rests, or repeated "is it ready yet?" checks.
# It also writes every reminder down so nothing is lost if the app is restarted.
# 🧪 Purpose (Technical Summary):
# Core scheduler: per-step trailing-edge debounce, fire-time computation for the
# standard / overnight / adaptive cases, timer bookkeeping keyed by (step, slot) under
# an instance RLock, and a synchronous JSON mirror of durable intent in the DurableStore.
# 🔗 Dependencies:
# engine.capabilities, engine.dispatcher, domain models, shared exceptions, json
# 🔄 Connected Modules / Calls From:
# engine.engine (BakeNotificationEngine), engine.reconciliation (restore/replace),
# engine.timezone_monitor (active records)

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from functools import partial
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.shared.core.exceptions import CapabilityUnavailableError

from ..domain.models.notification import (
    FireEvent,
    FireKind,
    NotificationType,
    ScheduledNotification,
)
from .capabilities import Clock, DurableStore, NotificationChannel, TimerPrimitive

logger = logging.getLogger(__name__)


class TimerSlot(str, Enum):
    """Per-step timer slots; at most one outstanding timer per slot."""
    HEADS_UP = "heads_up"
    MAIN = "main"
    MISSED = "missed"
    BEDTIME = "bedtime"
    WAKEUP = "wakeup"
    END = "end"


SLOT_BY_RECORD_TYPE: Dict[NotificationType, TimerSlot] = {
    NotificationType.START: TimerSlot.MAIN,
    NotificationType.ADAPTIVE: TimerSlot.MAIN,
    NotificationType.END: TimerSlot.END,
    NotificationType.BEDTIME: TimerSlot.BEDTIME,
    NotificationType.WAKEUP: TimerSlot.WAKEUP,
}


@dataclass
class ScheduleOptions:
    is_overnight: bool = False
    bedtime: Optional[datetime] = None
    wakeup: Optional[datetime] = None
    is_adaptive: bool = False
    adaptive_check_interval: Optional[int] = None  # minutes
    notify_on_end: bool = False


@dataclass(frozen=True)
class ScheduleRequest:
    step_id: str
    step_name: str
    start_time: datetime
    duration_minutes: int
    bake_id: Optional[str]
    options: ScheduleOptions


@dataclass
class _ArmedTimer:
    event: FireEvent
    record: Optional[ScheduledNotification] = None
    interval_minutes: Optional[int] = None
    handle: Any = None


def _delay_ms(fire_at: datetime, now: datetime) -> int:
    return max(0, int((fire_at - now).total_seconds() * 1000))


class NotificationScheduler:
    """
    Schedules, tracks and cancels bake step alarms.

    All mutations of the timer, debounce and record maps happen under one
    re-entrant lock. A fire removes its own entry first; an entry that is no
    longer current (cancelled or replaced) makes the fire a no-op.
    """

    def __init__(
        self,
        clock: Clock,
        timer: Optional[TimerPrimitive],
        store: Optional[DurableStore],
        dispatcher,
        channel: Optional[NotificationChannel] = None,
        store_key: str = "crumbcoach:scheduled-notifications",
        debounce_ms: int = 500,
        heads_up_lead_minutes: int = 5,
        missed_check_minutes: int = 10,
        adaptive_check_interval_minutes: int = 30,
    ):
        self.clock = clock
        self.timer = timer
        self.store = store
        self.dispatcher = dispatcher
        self.channel = channel
        self.store_key = store_key
        self.debounce_ms = debounce_ms
        self.heads_up_lead = timedelta(minutes=heads_up_lead_minutes)
        self.missed_check_delay = timedelta(minutes=missed_check_minutes)
        self.adaptive_check_interval_minutes = adaptive_check_interval_minutes

        self._lock = threading.RLock()
        self._timers: Dict[str, Dict[TimerSlot, _ArmedTimer]] = {}
        self._debounce_timers: Dict[str, Any] = {}
        self._pending_requests: Dict[str, ScheduleRequest] = {}
        self._records: Dict[str, ScheduledNotification] = {}

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def schedule_step_alarms(
        self,
        step_id: str,
        step_name: str,
        start_time: datetime,
        duration_minutes: int,
        bake_id: Optional[str] = None,
        options: Optional[ScheduleOptions] = None,
    ) -> bool:
        """
        Request alarms for a step.

        Calls for the same step inside the debounce window collapse into the
        last one. Returns False when scheduling degraded to a no-op.
        """
        request = ScheduleRequest(
            step_id=step_id,
            step_name=step_name,
            start_time=start_time,
            duration_minutes=duration_minutes,
            bake_id=bake_id,
            options=options or ScheduleOptions(),
        )

        try:
            self._require_capabilities()
        except CapabilityUnavailableError as e:
            logger.warning(f"Not scheduling alarms for step {step_id}: {e.message}")
            return False

        with self._lock:
            previous = self._debounce_timers.pop(step_id, None)
            if previous is not None:
                self.timer.cancel(previous)
                logger.debug(f"Debounced earlier schedule request for step {step_id}")

            self._pending_requests[step_id] = request
            self._debounce_timers[step_id] = self.timer.schedule(
                self.debounce_ms, partial(self._flush_request, step_id, request)
            )
        return True

    def clear_alarm(self, step_id: str) -> None:
        """Cancel everything for a step and forget its durable records."""
        with self._lock:
            handle = self._debounce_timers.pop(step_id, None)
            if handle is not None:
                self.timer.cancel(handle)
            self._pending_requests.pop(step_id, None)

            cancelled = self._cancel_step_timers(step_id)
            dropped = self._drop_step_records(step_id)
            if dropped:
                self._persist()

        if cancelled or dropped:
            logger.info(f"Cleared alarms for step {step_id} ({cancelled} timers, {dropped} records)")

    def clear_all_alarms(self) -> None:
        """
        Cancel every outstanding timer and pending debounce.

        Durable records are kept so the next start can reconcile them.
        """
        with self._lock:
            for handle in self._debounce_timers.values():
                self.timer.cancel(handle)
            self._debounce_timers.clear()
            self._pending_requests.clear()

            count = 0
            for step_id in list(self._timers):
                count += self._cancel_step_timers(step_id)

        logger.info(f"Cleared all alarms ({count} timers)")

    def acknowledge_step(self, step_id: str) -> bool:
        """The baker started the step: drop the missed-check nudge only."""
        with self._lock:
            entry = self._timers.get(step_id, {}).pop(TimerSlot.MISSED, None)
            if entry is None:
                return False
            self.timer.cancel(entry.handle)
            if not self._timers[step_id]:
                del self._timers[step_id]

        logger.info(f"Step {step_id} acknowledged, missed check cancelled")
        return True

    def get_scheduled_alarms(self) -> List[str]:
        """Step ids with at least one outstanding timer."""
        with self._lock:
            return sorted(self._timers)

    def get_pending_requests(self) -> List[str]:
        with self._lock:
            return sorted(self._pending_requests)

    def get_timer_slots(self, step_id: str) -> List[TimerSlot]:
        with self._lock:
            return list(self._timers.get(step_id, {}))

    def get_active_records(self, now: Optional[datetime] = None) -> List[ScheduledNotification]:
        now = now or self.clock.now()
        with self._lock:
            active = [r for r in self._records.values() if r.is_future_active(now)]
        return sorted(active, key=lambda r: r.scheduled_time)

    @property
    def records(self) -> List[ScheduledNotification]:
        with self._lock:
            return list(self._records.values())

    # ------------------------------------------------------------------
    # Durable intent
    # ------------------------------------------------------------------

    def load_persisted_records(self) -> List[ScheduledNotification]:
        """
        Load the durable record map once at startup.

        Read failures and unparsable data are logged and treated as empty.
        """
        records: Dict[str, ScheduledNotification] = {}

        if self.store is not None:
            try:
                raw = self.store.get(self.store_key)
            except Exception as e:
                logger.error(f"Failed to read scheduled notifications: {e}")
                raw = None

            if raw:
                try:
                    data = json.loads(raw)
                except ValueError as e:
                    logger.error(f"Scheduled notifications blob is not valid JSON: {e}")
                    data = {}

                if not isinstance(data, dict):
                    logger.error("Scheduled notifications blob is not an object, ignoring it")
                    data = {}

                for record_id, value in data.items():
                    try:
                        record = ScheduledNotification.model_validate(value)
                    except PydanticValidationError as e:
                        logger.warning(f"Skipping invalid scheduled notification {record_id}: {e}")
                        continue
                    records[record.id] = record

        with self._lock:
            self._records = records

        logger.info(f"Loaded {len(records)} scheduled notifications")
        return list(records.values())

    def replace_records(self, records: List[ScheduledNotification]) -> None:
        with self._lock:
            self._records = {r.id: r for r in records}
            self._persist()

    def restore(self, record: ScheduledNotification, delay_ms: int) -> bool:
        """Re-arm a persisted record after a restart."""
        if self.timer is None:
            logger.warning(f"No timer available, cannot re-arm {record.id}")
            return False

        event = FireEvent.from_record(record)
        interval = None
        if record.type == NotificationType.ADAPTIVE:
            interval = record.check_interval_minutes or self.adaptive_check_interval_minutes

        with self._lock:
            self._arm(SLOT_BY_RECORD_TYPE[record.type], event, delay_ms, record=record, interval_minutes=interval)

        logger.info(f"Re-armed {record.id} in {delay_ms} ms")
        return True

    def _persist(self) -> None:
        if self.store is None:
            return

        blob = json.dumps({rid: r.model_dump(mode="json") for rid, r in self._records.items()})
        try:
            self.store.set(self.store_key, blob)
        except Exception as e:
            logger.error(f"Failed to persist scheduled notifications: {e}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_capabilities(self) -> None:
        if self.timer is None:
            raise CapabilityUnavailableError("timer")
        if self.channel is None:
            raise CapabilityUnavailableError("notification_channel")

    def _flush_request(self, step_id: str, request: ScheduleRequest) -> None:
        with self._lock:
            if self._pending_requests.get(step_id) is not request:
                return
            del self._pending_requests[step_id]
            self._debounce_timers.pop(step_id, None)
            self._apply(request)

    def _apply(self, request: ScheduleRequest) -> None:
        now = self.clock.now()
        options = request.options

        self._cancel_step_timers(request.step_id)
        self._drop_step_records(request.step_id)

        if options.is_overnight and options.bedtime and options.wakeup:
            self._arm_if_future(TimerSlot.BEDTIME, self._event(request, FireKind.BEDTIME, options.bedtime), now)
            self._arm_if_future(TimerSlot.WAKEUP, self._event(request, FireKind.WAKEUP, options.wakeup), now)
        elif options.is_adaptive:
            self._apply_adaptive(request, now)
        else:
            if options.is_overnight:
                logger.warning(
                    f"Overnight step {request.step_id} lacks bedtime or wakeup, using standard alarms"
                )
            self._apply_standard(request, now)

        if options.notify_on_end:
            end_at = request.start_time + timedelta(minutes=request.duration_minutes)
            self._arm_if_future(TimerSlot.END, self._event(request, FireKind.END, end_at), now)

        self._persist()
        logger.info(
            f"Scheduled step {request.step_id} ({request.step_name}): "
            f"{[slot.value for slot in self._timers.get(request.step_id, {})]}"
        )

    def _apply_standard(self, request: ScheduleRequest, now: datetime) -> None:
        start = request.start_time
        self._arm_if_future(
            TimerSlot.HEADS_UP, self._event(request, FireKind.HEADS_UP, start - self.heads_up_lead), now
        )
        self._arm_if_future(TimerSlot.MAIN, self._event(request, FireKind.START, start), now)
        self._arm_if_future(
            TimerSlot.MISSED, self._event(request, FireKind.MISSED, start + self.missed_check_delay), now
        )

    def _apply_adaptive(self, request: ScheduleRequest, now: datetime) -> None:
        interval = request.options.adaptive_check_interval or self.adaptive_check_interval_minutes

        if request.start_time >= now:
            event = self._event(request, FireKind.ADAPTIVE_START, request.start_time)
            self._arm(TimerSlot.MAIN, event, _delay_ms(request.start_time, now), interval_minutes=interval)
            return

        # Step already under way: go straight to readiness checks.
        first_check = now + timedelta(minutes=interval)
        event = self._event(request, FireKind.ADAPTIVE_CHECK, first_check, check_count=1)
        self._arm(TimerSlot.MAIN, event, _delay_ms(first_check, now), interval_minutes=interval)
        logger.info(f"Adaptive step {request.step_id} started in the past, checks begin in {interval} min")

    @staticmethod
    def _event(
        request: ScheduleRequest,
        kind: FireKind,
        fire_at: datetime,
        check_count: Optional[int] = None,
    ) -> FireEvent:
        return FireEvent(
            kind=kind,
            step_id=request.step_id,
            step_name=request.step_name,
            bake_id=request.bake_id,
            scheduled_time=fire_at,
            check_count=check_count,
        )

    def _arm_if_future(self, slot: TimerSlot, event: FireEvent, now: datetime) -> bool:
        if event.scheduled_time < now:
            logger.debug(f"Skipping past {event.kind.value} fire for step {event.step_id}")
            return False
        self._arm(slot, event, _delay_ms(event.scheduled_time, now))
        return True

    def _arm(
        self,
        slot: TimerSlot,
        event: FireEvent,
        delay_ms: int,
        record: Optional[ScheduledNotification] = None,
        interval_minutes: Optional[int] = None,
    ) -> _ArmedTimer:
        step_timers = self._timers.setdefault(event.step_id, {})
        existing = step_timers.get(slot)
        if existing is not None:
            self.timer.cancel(existing.handle)

        if record is None and event.is_durable:
            record = ScheduledNotification.for_event(event, check_interval_minutes=interval_minutes)

        entry = _ArmedTimer(event=event, record=record, interval_minutes=interval_minutes)
        step_timers[slot] = entry
        if record is not None:
            self._records[record.id] = record

        entry.handle = self.timer.schedule(delay_ms, partial(self._on_fire, event.step_id, slot, entry))
        logger.debug(f"Armed {event.kind.value} for step {event.step_id} in {delay_ms} ms")
        return entry

    def _cancel_step_timers(self, step_id: str) -> int:
        step_timers = self._timers.pop(step_id, {})
        for entry in step_timers.values():
            self.timer.cancel(entry.handle)
        return len(step_timers)

    def _drop_step_records(self, step_id: str) -> int:
        stale = [rid for rid, r in self._records.items() if r.step_id == step_id]
        for rid in stale:
            del self._records[rid]
        return len(stale)

    def _on_fire(self, step_id: str, slot: TimerSlot, entry: _ArmedTimer) -> None:
        with self._lock:
            step_timers = self._timers.get(step_id)
            if not step_timers or step_timers.get(slot) is not entry:
                return
            del step_timers[slot]
            if not step_timers:
                del self._timers[step_id]

            event = entry.event
            if event.kind in (FireKind.ADAPTIVE_START, FireKind.ADAPTIVE_CHECK):
                self._arm_next_check(entry)

        try:
            self.dispatcher.dispatch(event)
        except Exception as e:
            logger.error(f"Dispatch failed for {event.kind.value} on step {step_id}: {e}", exc_info=True)

        if entry.record is not None:
            with self._lock:
                if self._records.get(entry.record.id) is entry.record:
                    del self._records[entry.record.id]
                    self._persist()

    def _arm_next_check(self, entry: _ArmedTimer) -> None:
        interval = entry.interval_minutes or self.adaptive_check_interval_minutes
        event = entry.event
        fire_at = self.clock.now() + timedelta(minutes=interval)
        next_event = FireEvent(
            kind=FireKind.ADAPTIVE_CHECK,
            step_id=event.step_id,
            step_name=event.step_name,
            bake_id=event.bake_id,
            scheduled_time=fire_at,
            check_count=(event.check_count or 0) + 1,
        )
        self._arm(TimerSlot.MAIN, next_event, interval * 60_000, interval_minutes=interval)
