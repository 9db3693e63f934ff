# 📄 File: app/modules/bake_timeline/infrastructure/redis_store.py
# 🧭 Purpose (Layman Explanation):
# Keeps the list of scheduled bake alarms in Redis so it survives a server restart.
# 🧪 Purpose (Technical Summary):
# DurableStore capability backed by plain Redis string keys (GET/SET), using the shared
# connection pool from RedisConfig.
# 🔗 Dependencies:
# redis, engine.capabilities
# 🔄 Connected Modules / Calls From:
# app.main (lifespan engine construction)

import logging
from typing import Optional

import redis

from ..engine.capabilities import DurableStore

logger = logging.getLogger(__name__)


class RedisDurableStore(DurableStore):
    """
    Redis-based durable store.

    Errors propagate as ``redis.RedisError``; the engine logs them and
    carries on with an empty result.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.redis.get(self._key(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        self.redis.set(self._key(key), value)
        logger.debug(f"Stored {len(value)} bytes under {self._key(key)}")
