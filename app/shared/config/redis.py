# 📄 File: app/shared/config/redis.py
#
# 🧭 Purpose (Layman Explanation):
# Configuration for the Redis server that remembers which bake alarms are scheduled,
# so nothing is forgotten when the app restarts, and that carries alerts to the phone gateway.
#
# 🧪 Purpose (Technical Summary):
# Redis configuration with connection pooling and environment-specific settings
# for the durable notification store and the push gateway pub/sub channel.
#
# 🔗 Dependencies:
# - redis Python package
# - app.shared.config.settings
#
# 🔄 Connected Modules / Calls From:
# - app.modules.bake_timeline.infrastructure.redis_store
# - app.modules.bake_timeline.infrastructure.push_channel
# - app.main (lifespan startup/shutdown)

from typing import Any, Dict, Optional

import redis
from redis import ConnectionPool, Redis

from .settings import Settings, get_settings


# =============================================================================
# REDIS CONFIGURATION CLASS
# =============================================================================

class RedisConfig:
    """Redis configuration class with connection management."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._connection_pool: ConnectionPool | None = None
        self._redis_client: Redis | None = None

    @property
    def redis_url(self) -> str:
        """Get Redis connection URL."""
        return self.settings.REDIS_URL

    @property
    def connection_kwargs(self) -> Dict[str, Any]:
        """Get Redis connection configuration."""

        base_config = {
            "encoding": "utf-8",
            "decode_responses": True,
            "retry_on_timeout": True,
            "health_check_interval": 30,
            "socket_timeout": self.settings.REDIS_SOCKET_TIMEOUT,
            "socket_connect_timeout": self.settings.REDIS_SOCKET_TIMEOUT,
        }

        if self.settings.is_production:
            base_config.update({
                "socket_keepalive": True,
            })

        return base_config

    @property
    def pool_kwargs(self) -> Dict[str, Any]:
        """Get Redis connection pool configuration."""
        return {
            "max_connections": self.settings.REDIS_MAX_CONNECTIONS,
            **self.connection_kwargs
        }

    def create_connection_pool(self) -> ConnectionPool:
        """Create Redis connection pool."""
        if self._connection_pool is None:
            self._connection_pool = ConnectionPool.from_url(
                self.redis_url,
                **self.pool_kwargs
            )
        return self._connection_pool

    def create_redis_client(self) -> Redis:
        """Create Redis client with connection pool."""
        if self._redis_client is None:
            pool = self.create_connection_pool()
            self._redis_client = Redis(connection_pool=pool)
        return self._redis_client

    def health_check(self) -> Dict[str, Any]:
        """Ping Redis and report status."""
        try:
            self.create_redis_client().ping()
            return {"status": "healthy"}
        except redis.RedisError as e:
            return {"status": "unhealthy", "error": str(e)}

    def close_connections(self):
        """Close Redis connections and cleanup."""
        if self._redis_client:
            self._redis_client.close()
            self._redis_client = None

        if self._connection_pool:
            self._connection_pool.disconnect()
            self._connection_pool = None
