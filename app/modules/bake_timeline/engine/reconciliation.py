# 📄 File: app/modules/bake_timeline/engine/reconciliation.py
# 🧭 Purpose (Layman Explanation):
# When the app comes back after being closed or asleep, this checks every reminder that
# was written down: old ones are thrown away, ones that were just missed are shown right
# away as "missed", and future ones are set up again.
# 🧪 Purpose (Technical Summary):
# One-shot reconciliation of persisted ScheduledNotification records against the clock:
# expire (< -window), dispatch-as-missed ([-window, 0]), re-arm (> 0 and active), then
# persist the pruned set and emit a reconciliation_summary UI event.
# 🔗 Dependencies:
# engine.scheduler, engine.dispatcher, shared.core.event_bus, domain models
# 🔄 Connected Modules / Calls From:
# engine.engine (BakeNotificationEngine construction)

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List

from app.shared.core.event_bus import EventBus

from ..domain.models.notification import FireEvent, ScheduledNotification
from . import ui_events
from .capabilities import Clock

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    rescheduled: int = 0
    expired: int = 0
    reconciled: int = 0
    dropped_inactive: int = 0
    kept: List[ScheduledNotification] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.rescheduled + self.expired + self.reconciled + self.dropped_inactive

    def summary(self) -> Dict[str, int]:
        return {
            "rescheduled": self.rescheduled,
            "expired": self.expired,
            "reconciled": self.reconciled,
        }


class ReconciliationEngine:
    """Reconciles persisted scheduling intent after an unknown gap."""

    def __init__(
        self,
        clock: Clock,
        scheduler,
        dispatcher,
        event_bus: EventBus,
        window_minutes: int = 30,
    ):
        self.clock = clock
        self.scheduler = scheduler
        self.dispatcher = dispatcher
        self.event_bus = event_bus
        self.window = timedelta(minutes=window_minutes)

    def run(self) -> ReconciliationResult:
        now = self.clock.now()
        result = ReconciliationResult()

        for record in self.scheduler.records:
            delta = record.scheduled_time - now

            if delta < -self.window:
                result.expired += 1
                logger.info(f"Dropping expired notification {record.id} ({-delta} late)")

            elif delta <= timedelta(0):
                late_minutes = int(-delta.total_seconds() // 60)
                result.reconciled += 1
                logger.info(f"Delivering missed notification {record.id} ({late_minutes} min late)")
                try:
                    self.dispatcher.dispatch(FireEvent.from_record(record).as_missed(late_minutes))
                except Exception as e:
                    logger.error(f"Missed dispatch failed for {record.id}: {e}", exc_info=True)

            elif record.is_active:
                delay_ms = int(delta.total_seconds() * 1000)
                self.scheduler.restore(record, delay_ms)
                result.kept.append(record)
                result.rescheduled += 1

            else:
                result.dropped_inactive += 1
                logger.debug(f"Dropping inactive notification {record.id}")

        self.scheduler.replace_records(result.kept)

        if result.processed:
            self.event_bus.emit(ui_events.RECONCILIATION_SUMMARY, result.summary())
            logger.info(f"Reconciliation finished: {result.summary()}")

        return result
