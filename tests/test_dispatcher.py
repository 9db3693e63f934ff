from datetime import timedelta
from types import SimpleNamespace

import pytest

from app.modules.bake_timeline.domain.models.notification import FireEvent, FireKind, Priority
from app.modules.bake_timeline.engine.dispatcher import (
    DELIVERY_BANNER,
    DELIVERY_SYSTEM,
    HIGH_PRIORITY_PROFILE,
    NotificationDispatcher,
    notification_body,
)
from tests.conftest import NOW
from tests.fakes import FakeAudio, FakeChannel, alarm_payloads


def make_event(kind=FireKind.START, **overrides):
    fields = dict(
        kind=kind,
        step_id="s1",
        step_name="Shape",
        bake_id="b1",
        scheduled_time=NOW,
    )
    fields.update(overrides)
    return FireEvent(**fields)


def test_high_priority_is_presented_with_interaction_vibration_and_sound(event_bus, channel, audio):
    dispatcher = NotificationDispatcher(event_bus, channel=channel, audio=audio)

    assert dispatcher.dispatch(make_event(FireKind.START)) == DELIVERY_SYSTEM

    [shown] = channel.presented
    options = shown["options"]
    assert options["requireInteraction"] is True
    assert options["vibrate"] == [200, 100, 200, 100, 200]
    assert options["silent"] is False
    assert options["tag"] == "bake-b1"
    assert options["icon"] == "/favicon.ico"
    assert options["data"]["stepId"] == "s1"
    assert audio.played == [HIGH_PRIORITY_PROFILE.vibration_pattern]


def test_low_priority_is_silent_by_default(event_bus, channel, audio):
    dispatcher = NotificationDispatcher(event_bus, channel=channel, audio=audio)

    dispatcher.dispatch(make_event(FireKind.HEADS_UP))

    options = channel.presented[0]["options"]
    assert options["requireInteraction"] is False
    assert options["vibrate"] == [100]
    assert options["silent"] is True
    assert audio.played == []


def test_low_priority_sound_can_be_enabled(event_bus, channel, audio):
    dispatcher = NotificationDispatcher(event_bus, channel=channel, audio=audio, notify_low_priority_sound=True)

    dispatcher.dispatch(make_event(FireKind.BEDTIME))

    assert audio.played == [[100]]


@pytest.mark.parametrize("kind,priority", [
    (FireKind.START, Priority.HIGH),
    (FireKind.END, Priority.HIGH),
    (FireKind.MISSED, Priority.HIGH),
    (FireKind.WAKEUP, Priority.HIGH),
    (FireKind.ADAPTIVE_START, Priority.HIGH),
    (FireKind.HEADS_UP, Priority.LOW),
    (FireKind.BEDTIME, Priority.LOW),
    (FireKind.ADAPTIVE_CHECK, Priority.LOW),
])
def test_priority_classification(kind, priority):
    assert make_event(kind).priority == priority


def test_rejected_presentation_falls_back_to_banner(event_bus, audio):
    dispatcher = NotificationDispatcher(event_bus, channel=FakeChannel(result=False), audio=audio)

    assert dispatcher.dispatch(make_event()) == DELIVERY_BANNER

    [banner] = [e.payload for e in event_bus.recent_events("in_app_banner")]
    assert banner["title"] == "🍞 Baking Step Ready!"
    assert banner["body"] == "Time for: Shape"
    assert alarm_payloads(event_bus)[0]["delivery"] == DELIVERY_BANNER


def test_channel_exception_falls_back_to_banner(event_bus):
    dispatcher = NotificationDispatcher(event_bus, channel=FakeChannel(error=RuntimeError("gateway down")))

    assert dispatcher.dispatch(make_event()) == DELIVERY_BANNER
    assert len(event_bus.recent_events("in_app_banner")) == 1


def test_missing_permission_skips_the_channel(event_bus):
    channel = FakeChannel(permission=False)
    dispatcher = NotificationDispatcher(event_bus, channel=channel)

    assert dispatcher.dispatch(make_event()) == DELIVERY_BANNER
    assert channel.presented == []


def test_no_channel_uses_banner(event_bus):
    dispatcher = NotificationDispatcher(event_bus)

    assert dispatcher.dispatch(make_event()) == DELIVERY_BANNER


def test_dnd_routes_to_banner_and_keeps_high_priority_tone(event_bus, channel, audio):
    dnd = SimpleNamespace(is_active=True)
    dispatcher = NotificationDispatcher(event_bus, dnd_monitor=dnd, channel=channel, audio=audio)

    assert dispatcher.dispatch(make_event(FireKind.START)) == DELIVERY_BANNER
    assert channel.presented == []
    assert len(audio.played) == 1

    dispatcher.dispatch(make_event(FireKind.HEADS_UP))
    assert len(audio.played) == 1


def test_audio_failure_does_not_break_dispatch(event_bus, channel):
    dispatcher = NotificationDispatcher(event_bus, channel=channel, audio=FakeAudio(error=OSError("no device")))

    assert dispatcher.dispatch(make_event()) == DELIVERY_SYSTEM
    assert len(alarm_payloads(event_bus)) == 1


def test_missed_variant_body_and_payload(event_bus, channel):
    dispatcher = NotificationDispatcher(event_bus, channel=channel)
    event = make_event(FireKind.START).as_missed(7)

    dispatcher.dispatch(event)

    assert channel.presented[0]["body"] == "Time for: Shape (missed — 7 minutes late)"
    assert alarm_payloads(event_bus)[0]["lateMinutes"] == 7


def test_adaptive_check_body_counts_checks():
    event = make_event(FireKind.ADAPTIVE_CHECK, check_count=3, scheduled_time=NOW + timedelta(minutes=90))

    assert notification_body(event) == "Check #3: is Shape ready?"
    assert event.to_payload()["checkCount"] == 3
