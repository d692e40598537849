import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Set

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """anything progress events can be pushed to (a websocket qualifies)"""

    async def send_json(self, data: Any) -> None: ...


class RedisRelay:
    """mirror progress events onto redis pub/sub for other processes"""

    def __init__(self, redis_url: str, prefix: str = "job_progress:"):
        import redis.asyncio as aioredis
        self.prefix = prefix
        self.client = aioredis.from_url(redis_url)

    async def publish(self, owner_id: str, event: dict):
        try:
            await self.client.publish(f"{self.prefix}{owner_id}", json.dumps(event))
        except Exception as e:
            # relay is best effort, local subscribers already got the event
            logger.warning(f"failed to relay progress event for {owner_id}: {e}")

    async def close(self):
        await self.client.aclose()


class ProgressNotifier:
    """
    best-effort fan-out of job progress events, keyed by owner

    nothing is persisted: an owner with no attached channels simply
    misses the event and can read the job record instead
    """

    def __init__(self, relay: Optional[RedisRelay] = None, send_timeout: float = 5.0):
        self._channels: Dict[str, Set[Channel]] = {}
        self.relay = relay
        self.send_timeout = send_timeout

    def subscribe(self, owner_id: str, channel: Channel):
        self._channels.setdefault(owner_id, set()).add(channel)
        logger.info(f"channel subscribed for owner {owner_id} ({self.subscriber_count(owner_id)} active)")

    def unsubscribe(self, owner_id: str, channel: Channel):
        channels = self._channels.get(owner_id)
        if channels:
            channels.discard(channel)
            if not channels:
                self._channels.pop(owner_id, None)

    def subscriber_count(self, owner_id: str) -> int:
        return len(self._channels.get(owner_id, ()))

    async def publish(self, owner_id: str, event: dict) -> int:
        """push an event to every channel of an owner, returns deliveries made"""
        # copy, channels may unsubscribe while we await
        channels = list(self._channels.get(owner_id, ()))
        delivered = 0
        if channels:
            results = await asyncio.gather(
                *(self._deliver(owner_id, channel, event) for channel in channels),
                return_exceptions=True
            )
            delivered = sum(1 for result in results if result is True)

        if self.relay:
            await self.relay.publish(owner_id, event)
        return delivered

    async def _deliver(self, owner_id: str, channel: Channel, event: dict) -> bool:
        try:
            await asyncio.wait_for(channel.send_json(event), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"dropping channel for owner {owner_id}: send timed out after {self.send_timeout}s")
        except Exception as e:
            logger.warning(f"dropping channel for owner {owner_id}: {e}")
        self.unsubscribe(owner_id, channel)
        return False

    async def notify(
        self,
        owner_id: str,
        job_id,
        progress: int,
        message: str,
        status: str,
        **extra
    ) -> int:
        """build a job_progress event and publish it"""
        event = {
            "type": "job_progress",
            "job_id": str(job_id),
            "status": getattr(status, "value", status),
            "progress": progress,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        return await self.publish(owner_id, event)

    async def close(self):
        self._channels.clear()
        if self.relay:
            await self.relay.close()
