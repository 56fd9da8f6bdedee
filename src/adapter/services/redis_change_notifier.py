"""
Redis pub/sub change notifier.

Publishes JSON-encoded events on one channel per organization so that every
process (and every attendant device connected to any of them) sees a
redemption as soon as it commits.
"""

import logging
from typing import AsyncIterator, Optional
from uuid import UUID

import redis.asyncio as redis

from src.app.services.change_notifier import IChangeNotifier, InvitationChangeEvent

logger = logging.getLogger(__name__)


class RedisChangeNotifier(IChangeNotifier):
    def __init__(
        self,
        redis_url: str,
        channel_prefix: str = "invitations",
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.channel_prefix = channel_prefix
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self._client

    def channel_for(self, organization_id: UUID) -> str:
        return f"{self.channel_prefix}:{organization_id}"

    async def publish(self, event: InvitationChangeEvent) -> None:
        channel = self.channel_for(event.organization_id)
        receivers = await self.client.publish(channel, event.model_dump_json())
        logger.debug(f"Published change for invitation {event.invitation_id} to {receivers} receivers")

    async def stream(self, organization_id: UUID) -> AsyncIterator[InvitationChangeEvent]:
        pubsub = self.client.pubsub()
        await pubsub.subscribe(self.channel_for(organization_id))
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield InvitationChangeEvent.model_validate_json(message["data"])
                except ValueError as e:
                    logger.error(f"Discarding malformed change event: {e}")
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
