"""
Shared fixtures for the Crumb Coach test suite.

The settings object needs Supabase credentials at import time, so test
values are placed in the environment before anything under ``app`` loads.
"""

import os
from datetime import datetime, timezone

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402

from app.modules.bake_timeline.engine.engine import BakeNotificationEngine, EngineConfig  # noqa: E402
from app.shared.core.event_bus import EventBus  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeAudio,
    FakeChannel,
    FakeResolver,
    InMemoryDurableStore,
    VirtualClock,
)

# Monday 19 October 2026, 12:00 UTC (14:00 in Berlin).
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return VirtualClock(NOW)


@pytest.fixture
def store():
    return InMemoryDurableStore()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def audio():
    return FakeAudio()


@pytest.fixture
def resolver():
    return FakeResolver("Europe/Berlin")


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def make_engine(clock, store, channel, audio, resolver, event_bus):
    """Build an engine over the virtual doubles; keyword overrides replace any of them."""

    def _make(**overrides):
        kwargs = dict(
            clock=clock,
            timer=clock,
            store=store,
            channel=channel,
            audio=audio,
            resolver=resolver,
            event_bus=event_bus,
            config=EngineConfig(),
        )
        kwargs.update(overrides)
        return BakeNotificationEngine(**kwargs)

    return _make
