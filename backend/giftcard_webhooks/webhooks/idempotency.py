"""Redis-backed deduplication of webhook deliveries.

- An event id is claimed with SET NX EX before dispatch; a second delivery
  of the same id inside the TTL is skipped.
- Key pattern: webhook:seen:square:{event_id}
- If Redis is unavailable the delivery is allowed through (fail open).
"""

import logging
from functools import lru_cache

import redis

from giftcard_webhooks.core.config import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "webhook:seen"


class IdempotencyStore:
    def __init__(self, client: redis.Redis, ttl_seconds: int, provider: str = "square"):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.provider = provider

    def _key(self, event_id: str) -> str:
        return f"{KEY_PREFIX}:{self.provider}:{event_id}"

    def claim(self, event_id: str) -> bool:
        """Mark *event_id* as processed. Returns False if it was already seen."""
        try:
            was_set = self.client.set(self._key(event_id), "1", nx=True, ex=self.ttl_seconds)
        except redis.RedisError:
            logger.warning(
                f"Redis unavailable for webhook dedup, allowing event {event_id}",
                exc_info=True,
            )
            return True
        return bool(was_set)

    def release(self, event_id: str) -> None:
        """Forget *event_id* so a later redelivery is processed again."""
        try:
            self.client.delete(self._key(event_id))
        except redis.RedisError:
            logger.warning(f"Failed to release dedup claim for event {event_id}")


@lru_cache
def get_idempotency_store() -> IdempotencyStore | None:
    settings = get_settings()
    if not settings.webhook_dedup_enabled:
        return None
    client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    return IdempotencyStore(client, ttl_seconds=settings.webhook_dedup_ttl_seconds)
