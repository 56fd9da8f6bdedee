"""
In-process change notifier.

Fans events out to per-subscriber asyncio queues. Suitable for a single
process; multi-process deployments use the Redis notifier.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, List
from uuid import UUID

from src.app.services.change_notifier import IChangeNotifier, InvitationChangeEvent

logger = logging.getLogger(__name__)


class InMemoryChangeNotifier(IChangeNotifier):
    def __init__(self, queue_size: int = 50):
        self.queue_size = queue_size
        self.subscribers: Dict[UUID, List[asyncio.Queue]] = {}

    def subscribe(self, organization_id: UUID) -> asyncio.Queue:
        """Register a subscriber queue for an organization"""
        q: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self.subscribers.setdefault(organization_id, []).append(q)
        return q

    def unsubscribe(self, organization_id: UUID, q: asyncio.Queue) -> None:
        queues = self.subscribers.get(organization_id, [])
        if q in queues:
            queues.remove(q)
        if not queues:
            self.subscribers.pop(organization_id, None)

    async def publish(self, event: InvitationChangeEvent) -> None:
        for q in list(self.subscribers.get(event.organization_id, [])):
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                # Slow consumer: drop this event for it, keep the others flowing
                logger.warning(
                    f"Dropping change event for invitation {event.invitation_id}: subscriber queue full"
                )

    async def stream(self, organization_id: UUID) -> AsyncIterator[InvitationChangeEvent]:
        q = self.subscribe(organization_id)
        try:
            while True:
                yield await q.get()
        finally:
            self.unsubscribe(organization_id, q)
