import json
from datetime import datetime, timedelta, timezone

import pytest

from app.modules.bake_timeline.domain.models.notification import NotificationType, ScheduledNotification
from app.modules.bake_timeline.engine.dispatcher import NotificationDispatcher
from app.modules.bake_timeline.engine.dnd_monitor import (
    REASON_PLATFORM_SIGNAL,
    REASON_QUIET_HOURS,
    DoNotDisturbMonitor,
)
from app.modules.bake_timeline.engine.timezone_monitor import TimezoneMonitor
from tests.conftest import NOW
from tests.fakes import FakeChannel, FakeResolver, VirtualClock, alarm_payloads

# 20:30 UTC is 22:30 in Berlin (CEST) on this date.
LATE_EVENING = datetime(2026, 10, 19, 20, 30, tzinfo=timezone.utc)

TZ_KEY = "crumbcoach:timezone"


def dnd_events(event_bus):
    return [e.payload for e in event_bus.recent_events("dnd_status_changed")]


# ---------------------------------------------------------------------------
# Do-not-disturb
# ---------------------------------------------------------------------------

def test_quiet_hours_with_permission_activate_dnd_once(event_bus, resolver):
    clock = VirtualClock(LATE_EVENING)
    monitor = DoNotDisturbMonitor(clock, clock, event_bus, channel=FakeChannel(), resolver=resolver)

    assert monitor.check() is True
    assert monitor.reason == REASON_QUIET_HOURS
    monitor.check()

    assert dnd_events(event_bus) == [{"isActive": True, "reason": REASON_QUIET_HOURS}]


def test_quiet_hours_need_notification_permission(event_bus, resolver):
    clock = VirtualClock(LATE_EVENING)
    monitor = DoNotDisturbMonitor(clock, clock, event_bus, channel=FakeChannel(permission=False), resolver=resolver)

    assert monitor.check() is False
    assert dnd_events(event_bus) == []


def test_daytime_is_not_quiet(clock, event_bus, resolver):
    monitor = DoNotDisturbMonitor(clock, clock, event_bus, channel=FakeChannel(), resolver=resolver)

    assert monitor.check() is False
    assert dnd_events(event_bus) == []


def test_local_hour_comes_from_the_resolved_zone(event_bus):
    # 19:30 UTC is 20:30 in London but 21:30 in Berlin.
    clock = VirtualClock(datetime(2026, 10, 19, 19, 30, tzinfo=timezone.utc))
    london = DoNotDisturbMonitor(clock, clock, event_bus, channel=FakeChannel(), resolver=FakeResolver("Europe/London"))
    berlin = DoNotDisturbMonitor(clock, clock, event_bus, channel=FakeChannel(), resolver=FakeResolver("Europe/Berlin"))

    assert london.check() is False
    assert berlin.check() is True


@pytest.mark.parametrize("hour,expected", [(21, True), (23, True), (0, True), (6, True), (7, False), (12, False), (20, False)])
def test_quiet_hours_wrap_past_midnight(clock, event_bus, hour, expected):
    monitor = DoNotDisturbMonitor(clock, clock, event_bus)

    assert monitor.in_quiet_hours(NOW.replace(hour=hour)) is expected


def test_quiet_hours_within_one_day(clock, event_bus):
    monitor = DoNotDisturbMonitor(clock, clock, event_bus, quiet_hours_start=1, quiet_hours_end=5)

    assert monitor.in_quiet_hours(NOW.replace(hour=3)) is True
    assert monitor.in_quiet_hours(NOW.replace(hour=5)) is False
    assert monitor.in_quiet_hours(NOW.replace(hour=23)) is False


def test_standalone_signal_is_picked_up_by_polling(clock, event_bus, resolver):
    state = {"standalone": False}
    monitor = DoNotDisturbMonitor(
        clock, clock, event_bus,
        resolver=resolver,
        standalone_signal=lambda: state["standalone"],
        poll_interval_ms=30_000,
    )
    monitor.start()
    assert monitor.is_active is False

    state["standalone"] = True
    clock.advance(seconds=30)

    assert monitor.is_active is True
    assert dnd_events(event_bus) == [{"isActive": True, "reason": REASON_PLATFORM_SIGNAL}]

    monitor.stop()
    assert clock.pending == 0


def test_engine_delivers_in_app_while_dnd_is_active(make_engine, event_bus):
    clock = VirtualClock(LATE_EVENING)
    engine = make_engine(clock=clock, timer=clock)
    engine.start_monitors()
    assert engine.dnd_monitor.is_active is True

    engine.schedule_step_alarms("s1", "Shape", LATE_EVENING + timedelta(minutes=30), 45)
    clock.advance(minutes=30)

    [start] = alarm_payloads(event_bus, "start")
    assert start["delivery"] == "banner"


# ---------------------------------------------------------------------------
# Timezone
# ---------------------------------------------------------------------------

def active_record(offset=timedelta(hours=1)):
    return ScheduledNotification(
        id="s1:start",
        step_id="s1",
        step_name="Shape",
        scheduled_time=NOW + offset,
        type=NotificationType.START,
    )


def make_timezone_monitor(clock, store, resolver, event_bus, records=()):
    return TimezoneMonitor(
        clock=clock,
        timer=clock,
        store=store,
        resolver=resolver,
        event_bus=event_bus,
        dispatcher=NotificationDispatcher(event_bus, channel=FakeChannel()),
        records_provider=lambda now: [r for r in records if r.is_future_active(now)],
        state_key=TZ_KEY,
    )


def test_first_start_records_the_current_zone(clock, store, resolver, event_bus):
    monitor = make_timezone_monitor(clock, store, resolver, event_bus)

    monitor.start()

    assert monitor.last_zone == "Europe/Berlin"
    assert json.loads(store.data[TZ_KEY])["lastZone"] == "Europe/Berlin"
    assert event_bus.recent_events("timezone_change_detected") == []


def test_change_while_down_is_reported_at_start(clock, store, event_bus):
    store.data[TZ_KEY] = json.dumps({"lastZone": "Europe/Berlin", "lastChange": None})
    monitor = make_timezone_monitor(clock, store, FakeResolver("America/New_York"), event_bus, [active_record()])

    monitor.start()

    [detected] = event_bus.recent_events("timezone_change_detected")
    assert detected.payload["from"] == "Europe/Berlin"
    assert detected.payload["to"] == "America/New_York"
    assert detected.payload["detectedAt"] == NOW.isoformat()
    assert len(detected.payload["activeAlarms"]) == 1
    assert "1 scheduled bake alarm(s) may need review" in detected.payload["message"]

    [warning] = alarm_payloads(event_bus, "timezone_change")
    assert warning["priority"] == "high"

    state = json.loads(store.data[TZ_KEY])
    assert state["lastZone"] == "America/New_York"
    assert state["lastChange"]["from"] == "Europe/Berlin"


def test_change_without_active_alarms_is_recorded_silently(clock, store, event_bus):
    resolver = FakeResolver("Europe/Berlin")
    monitor = make_timezone_monitor(clock, store, resolver, event_bus)
    monitor.start()

    resolver.zone = "Asia/Tokyo"
    change = monitor.check()

    assert change["to"] == "Asia/Tokyo"
    assert monitor.last_change == change
    assert event_bus.recent_events("timezone_change_detected") == []
    assert alarm_payloads(event_bus) == []


def test_periodic_poll_detects_change(clock, store, event_bus):
    resolver = FakeResolver("Europe/Berlin")
    monitor = make_timezone_monitor(clock, store, resolver, event_bus, [active_record(timedelta(hours=3))])
    monitor.start()

    resolver.zone = "Europe/Lisbon"
    clock.advance(minutes=4)
    assert event_bus.recent_events("timezone_change_detected") == []

    clock.advance(minutes=1)
    assert len(event_bus.recent_events("timezone_change_detected")) == 1


def test_foreground_checks_are_debounced(clock, store, event_bus):
    resolver = FakeResolver("Europe/Berlin")
    monitor = make_timezone_monitor(clock, store, resolver, event_bus)
    monitor.start()
    resolver.zone = "Europe/Lisbon"
    calls_before = resolver.calls

    monitor.on_foreground()
    clock.advance(ms=400)
    monitor.on_foreground()
    clock.advance(ms=400)
    monitor.on_foreground()
    clock.advance(ms=999)
    assert monitor.last_zone == "Europe/Berlin"

    clock.advance(ms=1)
    assert monitor.last_zone == "Europe/Lisbon"
    assert resolver.calls == calls_before + 1


def test_resolver_failure_is_not_a_change(clock, store, event_bus):
    class BrokenResolver(FakeResolver):
        def current_zone(self):
            raise RuntimeError("no zone")

    monitor = make_timezone_monitor(clock, store, BrokenResolver(), event_bus)

    assert monitor.check() is None
