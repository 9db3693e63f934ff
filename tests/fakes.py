"""
Virtual platform doubles for driving the notification engine in tests.
"""

import heapq
import itertools
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.modules.bake_timeline.domain.models.bake import Bake, SensorReading
from app.modules.bake_timeline.domain.repositories.bake_repository import BakeRepository
from app.modules.bake_timeline.domain.repositories.sensor_repository import SensorRepository
from app.modules.bake_timeline.engine.capabilities import (
    AudioAlert,
    Clock,
    DurableStore,
    NotificationChannel,
    TimerCallback,
    TimerPrimitive,
    TimezoneResolver,
)


class VirtualClock(Clock, TimerPrimitive):
    """
    Clock and timer on virtual time.

    Nothing fires until ``advance`` is called; callbacks run in due order
    with ``now`` set to their due instant.
    """

    def __init__(self, start: datetime):
        self._now = start
        self._queue: List = []
        self._seq = itertools.count()
        self._cancelled = set()
        self.scheduled_delays: List[int] = []

    def now(self) -> datetime:
        return self._now

    def schedule(self, delay_ms: int, callback: TimerCallback) -> Any:
        handle = next(self._seq)
        heapq.heappush(self._queue, (self._now + timedelta(milliseconds=delay_ms), handle, callback))
        self.scheduled_delays.append(delay_ms)
        return handle

    def cancel(self, handle: Any) -> None:
        self._cancelled.add(handle)

    @property
    def pending(self) -> int:
        return sum(1 for _, handle, _ in self._queue if handle not in self._cancelled)

    def advance(self, ms: int = 0, seconds: float = 0, minutes: float = 0, hours: float = 0) -> None:
        target = self._now + timedelta(milliseconds=ms, seconds=seconds, minutes=minutes, hours=hours)
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            if handle in self._cancelled:
                continue
            self._now = max(self._now, due)
            callback()
        self._now = target


class InMemoryDurableStore(DurableStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise OSError("store unavailable")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("store unavailable")
        self.data[key] = value
        self.writes += 1


class FakeChannel(NotificationChannel):
    def __init__(self, result: bool = True, permission: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.permission = permission
        self.error = error
        self.presented: List[Dict[str, Any]] = []

    def present(self, title: str, body: str, options: Dict[str, Any]) -> bool:
        if self.error is not None:
            raise self.error
        self.presented.append({"title": title, "body": body, "options": options})
        return self.result

    def permission_granted(self) -> bool:
        return self.permission


class FakeAudio(AudioAlert):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.played: List[List[int]] = []

    def play(self, vibration_pattern: List[int]) -> None:
        if self.error is not None:
            raise self.error
        self.played.append(list(vibration_pattern))


class FakeResolver(TimezoneResolver):
    def __init__(self, zone: str = "UTC"):
        self.zone = zone
        self.calls = 0

    def current_zone(self) -> str:
        self.calls += 1
        return self.zone


class InMemoryBakeRepository(BakeRepository):
    def __init__(self, bakes: Optional[List[Bake]] = None, error: Optional[Exception] = None):
        self.bakes: Dict[str, Bake] = {b.id: b for b in bakes or []}
        self.error = error
        self.patches: List[Dict[str, Any]] = []

    async def get_bake(self, bake_id: str) -> Optional[Bake]:
        if self.error is not None:
            raise self.error
        return self.bakes.get(bake_id)

    async def update_bake(self, bake_id: str, patch: Dict[str, Any]) -> Optional[Bake]:
        self.patches.append(patch)
        current = self.bakes.get(bake_id)
        if current is None:
            return None
        updated = Bake.model_validate({**current.model_dump(mode="json"), **patch})
        self.bakes[bake_id] = updated
        return updated


class StaticSensorRepository(SensorRepository):
    def __init__(self, reading: Optional[SensorReading] = None, error: Optional[Exception] = None):
        self.reading = reading
        self.error = error

    async def get_latest_reading(self) -> Optional[SensorReading]:
        if self.error is not None:
            raise self.error
        return self.reading


def alarm_payloads(event_bus, kind: Optional[str] = None) -> List[Dict[str, Any]]:
    """Payloads of every alarm_fired event so far, optionally filtered by fire type."""
    payloads = [e.payload for e in event_bus.recent_events("alarm_fired")]
    if kind is not None:
        payloads = [p for p in payloads if p["type"] == kind]
    return payloads


def fired_kinds(event_bus) -> List[str]:
    return [p["type"] for p in alarm_payloads(event_bus)]
