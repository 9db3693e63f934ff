import asyncio
import json
from unittest.mock import MagicMock

import pytest
import redis
from postgrest import APIError

from app.modules.bake_timeline.infrastructure.database import (
    SupabaseBakeRepository,
    SupabaseSensorRepository,
)
from app.modules.bake_timeline.infrastructure.platform import SystemTimezoneResolver
from app.modules.bake_timeline.infrastructure.push_channel import RedisPushChannel
from app.modules.bake_timeline.infrastructure.redis_store import RedisDurableStore
from app.modules.bake_timeline.infrastructure.timers import AsyncioTimerPrimitive
from app.shared.core.exceptions import StorageError


def supabase_client(data=None, error=None):
    """A Supabase client mock whose query chain ends in ``execute``."""
    query = MagicMock()
    for method in ("select", "eq", "limit", "order", "update"):
        getattr(query, method).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data)

    client = MagicMock()
    client.table.return_value = query
    return client, query


# ---------------------------------------------------------------------------
# Redis adapters
# ---------------------------------------------------------------------------

def test_redis_store_decodes_bytes_and_prefixes_keys():
    client = MagicMock()
    client.get.return_value = b'{"a": 1}'
    store = RedisDurableStore(client, key_prefix="test:")

    assert store.get("notifications") == '{"a": 1}'
    client.get.assert_called_once_with("test:notifications")

    store.set("notifications", "{}")
    client.set.assert_called_once_with("test:notifications", "{}")


def test_redis_store_missing_key_is_none():
    client = MagicMock()
    client.get.return_value = None

    assert RedisDurableStore(client).get("nothing") is None


def test_push_channel_publishes_json_and_reports_receivers():
    client = MagicMock()
    client.publish.return_value = 1
    channel = RedisPushChannel(client, channel_name="push")

    assert channel.present("Title", "Body", {"tag": "bake-b1"}) is True

    name, message = client.publish.call_args.args
    assert name == "push"
    decoded = json.loads(message)
    assert decoded["title"] == "Title"
    assert decoded["options"] == {"tag": "bake-b1"}
    assert "sentAt" in decoded


def test_push_channel_without_subscribers_fails_delivery():
    client = MagicMock()
    client.publish.return_value = 0

    assert RedisPushChannel(client).present("Title", "Body", {}) is False


def test_push_channel_redis_error_fails_delivery():
    client = MagicMock()
    client.publish.side_effect = redis.ConnectionError("down")

    assert RedisPushChannel(client).present("Title", "Body", {}) is False


def test_push_channel_permission_flag():
    assert RedisPushChannel(MagicMock(), permission=False).permission_granted() is False


# ---------------------------------------------------------------------------
# Platform
# ---------------------------------------------------------------------------

def test_resolver_prefers_override(monkeypatch):
    monkeypatch.setenv("TZ", "Asia/Tokyo")

    assert SystemTimezoneResolver(override="Europe/Paris").current_zone() == "Europe/Paris"


def test_resolver_reads_tz_variable(monkeypatch):
    monkeypatch.setenv("TZ", ":America/Chicago")

    assert SystemTimezoneResolver().current_zone() == "America/Chicago"


def test_resolver_follows_localtime_symlink(monkeypatch, tmp_path):
    monkeypatch.delenv("TZ", raising=False)
    zone_file = tmp_path / "zoneinfo" / "Europe" / "Berlin"
    zone_file.parent.mkdir(parents=True)
    zone_file.write_bytes(b"TZif")
    link = tmp_path / "localtime"
    link.symlink_to(zone_file)

    assert SystemTimezoneResolver(localtime_path=str(link)).current_zone() == "Europe/Berlin"


def test_resolver_defaults_to_utc(monkeypatch, tmp_path):
    monkeypatch.delenv("TZ", raising=False)
    plain = tmp_path / "localtime"
    plain.write_bytes(b"TZif")

    assert SystemTimezoneResolver(localtime_path=str(plain)).current_zone() == "UTC"


def test_asyncio_timer_fires_and_cancels():
    async def scenario():
        timer = AsyncioTimerPrimitive()
        fired = []
        timer.schedule(10, lambda: fired.append("kept"))
        handle = timer.schedule(10, lambda: fired.append("cancelled"))
        timer.cancel(handle)
        await asyncio.sleep(0.05)
        return fired

    assert asyncio.run(scenario()) == ["kept"]


def test_asyncio_timer_accepts_calls_from_worker_threads():
    async def scenario():
        timer = AsyncioTimerPrimitive()
        fired = []
        await asyncio.to_thread(timer.schedule, 200, lambda: fired.append("kept"))
        handle = await asyncio.to_thread(timer.schedule, 200, lambda: fired.append("cancelled"))
        await asyncio.to_thread(timer.cancel, handle)
        await asyncio.sleep(0.3)
        return fired

    assert asyncio.run(scenario()) == ["kept"]


# ---------------------------------------------------------------------------
# Supabase repositories
# ---------------------------------------------------------------------------

def test_bake_repository_maps_row():
    client, query = supabase_client([{
        "id": "b1",
        "name": "Country loaf",
        "status": "active",
        "current_step": 2,
        "estimated_end_time": "2026-10-19T16:00:00+00:00",
        "timeline_adjustments": None,
    }])
    repository = SupabaseBakeRepository(client, table="bakes")

    bake = asyncio.run(repository.get_bake("b1"))

    client.table.assert_called_with("bakes")
    query.eq.assert_called_with("id", "b1")
    assert bake.current_step == 2
    assert bake.timeline_adjustments == []


def test_bake_repository_missing_row_is_none():
    client, _ = supabase_client([])

    assert asyncio.run(SupabaseBakeRepository(client).get_bake("nope")) is None


def test_bake_repository_wraps_api_errors():
    client, _ = supabase_client(error=APIError({"message": "relation does not exist", "code": "42P01"}))

    with pytest.raises(StorageError) as exc_info:
        asyncio.run(SupabaseBakeRepository(client).get_bake("b1"))
    assert exc_info.value.details["operation"] == "select"


def test_bake_repository_update_sends_patch():
    client, query = supabase_client([{"id": "b1", "status": "active"}])
    patch = {"estimated_end_time": "2026-10-19T16:18:00+00:00", "timeline_adjustments": []}

    bake = asyncio.run(SupabaseBakeRepository(client).update_bake("b1", patch))

    query.update.assert_called_once_with(patch)
    assert bake.id == "b1"


def test_sensor_repository_latest_reading():
    client, query = supabase_client([{"temperature": 215, "humidity": 58, "timestamp": "2026-10-19T11:55:00+00:00"}])

    reading = asyncio.run(SupabaseSensorRepository(client).get_latest_reading())

    query.order.assert_called_once_with("timestamp", desc=True)
    assert reading.temperature_celsius == pytest.approx(21.5)
    assert reading.humidity == 58


def test_sensor_repository_malformed_row_is_no_reading():
    client, _ = supabase_client([{"temperature": "hot", "humidity": 58}])

    assert asyncio.run(SupabaseSensorRepository(client).get_latest_reading()) is None
