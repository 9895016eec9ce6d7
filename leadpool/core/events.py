import json
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from redis.asyncio import Redis

from leadpool.core.config import settings

logger = logging.getLogger(__name__)


class InvalidationBus:
    """Publishes "records changed" signals over Redis pub/sub.

    The engine is stateless; dashboards subscribe to this channel and
    simply recompute when a signal arrives.  If *redis_client* is ``None``
    (Redis unavailable), publishing degrades to a no-op and listening
    yields nothing.
    """

    def __init__(
        self,
        redis_client: Optional[Redis] = None,
        channel: Optional[str] = None,
    ) -> None:
        self._redis: Optional[Redis] = redis_client
        self._channel = channel or settings.INVALIDATION_CHANNEL

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None

    @staticmethod
    def build_message(origin: str, record_id: str, reason: str) -> Dict[str, Any]:
        return {
            "origin": origin,
            "record_id": record_id,
            "reason": reason,
            "at": datetime.now(timezone.utc).isoformat(),
        }

    async def publish(self, origin: str, record_id: str, reason: str) -> bool:
        """Announce that a record changed.  Returns ``False`` if not delivered."""
        if self._redis is None:
            return False
        payload = json.dumps(self.build_message(origin, record_id, reason))
        try:
            await self._redis.publish(self._channel, payload)
            return True
        except Exception:
            logger.warning(
                "Redis PUBLISH failed for %s %s on %s", origin, record_id, self._channel
            )
            return False

    async def listen(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded invalidation messages until the subscription ends."""
        if self._redis is None:
            return
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Invalid invalidation payload on %s", self._channel)
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
