from app.shared.core.event_bus import ALL_EVENTS, EventBus


def test_handlers_receive_matching_events_in_priority_order():
    bus = EventBus()
    calls = []
    bus.subscribe(lambda e: calls.append("low"), "alarm_fired", priority=1)
    bus.subscribe(lambda e: calls.append("high"), "alarm_fired", priority=5)
    bus.subscribe(lambda e: calls.append("other"), "dnd_status_changed")

    bus.emit("alarm_fired", {"stepId": "s1"})

    assert calls == ["high", "low"]


def test_wildcard_subscription_sees_everything():
    bus = EventBus()
    seen = []
    bus.subscribe(lambda e: seen.append(e.event_type), ALL_EVENTS)

    bus.emit("alarm_fired")
    bus.emit("in_app_banner")

    assert seen == ["alarm_fired", "in_app_banner"]


def test_failing_handler_does_not_affect_publisher_or_others():
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("listener crashed")

    bus.subscribe(broken, "alarm_fired", priority=2)
    bus.subscribe(lambda e: seen.append(e.payload), "alarm_fired")

    bus.emit("alarm_fired", {"stepId": "s1"})

    assert seen == [{"stepId": "s1"}]
    assert bus.get_stats()["failed"] == 1


def test_history_is_bounded_and_filterable():
    bus = EventBus(history_size=3)
    for i in range(5):
        bus.emit("alarm_fired" if i % 2 else "in_app_banner", {"n": i})

    assert [e.payload["n"] for e in bus.recent_events()] == [2, 3, 4]
    assert [e.payload["n"] for e in bus.recent_events("alarm_fired")] == [3]


def test_unsubscribe():
    bus = EventBus()
    seen = []

    def handler(event):
        seen.append(event)

    bus.subscribe(handler, "alarm_fired")
    bus.unsubscribe(handler, "alarm_fired")
    bus.emit("alarm_fired")

    assert seen == []
    assert bus.get_subscriptions() == {}
