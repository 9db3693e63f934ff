# 📄 File: app/modules/bake_timeline/infrastructure/push_channel.py
# 🧭 Purpose (Layman Explanation):
# Sends bake alarms to the push gateway that forwards them to the baker's phone.
# 🧪 Purpose (Technical Summary):
# NotificationChannel capability that publishes a JSON alert on a Redis pub/sub channel;
# delivery counts as successful when at least one gateway subscriber received it.
# 🔗 Dependencies:
# redis, json, engine.capabilities
# 🔄 Connected Modules / Calls From:
# app.main (lifespan engine construction), engine.dispatcher

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

import redis

from ..engine.capabilities import NotificationChannel

logger = logging.getLogger(__name__)


class RedisPushChannel(NotificationChannel):
    """Publishes alerts for the push gateway to deliver."""

    def __init__(
        self,
        redis_client: redis.Redis,
        channel_name: str = "crumbcoach:push",
        permission: bool = True,
    ):
        self.redis = redis_client
        self.channel_name = channel_name
        self.permission = permission

    def permission_granted(self) -> bool:
        return self.permission

    def present(self, title: str, body: str, options: Dict[str, Any]) -> bool:
        message = json.dumps({
            "title": title,
            "body": body,
            "options": options,
            "sentAt": datetime.now(timezone.utc).isoformat(),
        })

        try:
            receivers = self.redis.publish(self.channel_name, message)
        except redis.RedisError as e:
            logger.error(f"Push gateway publish failed: {e}")
            return False

        if not receivers:
            logger.warning(f"No push gateway subscribed to {self.channel_name}")
        return receivers > 0
