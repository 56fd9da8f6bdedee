import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncIterator
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities import Invitation, InvitationStatus, InvitationVersion, utc_now

logger = logging.getLogger(__name__)


class InvitationChangeEvent(BaseModel):
    """Published after an invitation transition commits"""

    invitation_id: UUID
    organization_id: UUID
    unit_id: UUID
    new_status: InvitationStatus
    current_uses: int
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def for_transition(
        cls, invitation: Invitation, state: InvitationVersion
    ) -> "InvitationChangeEvent":
        return cls(
            invitation_id=invitation.id,
            organization_id=invitation.organization_id,
            unit_id=invitation.unit_id,
            new_status=state.status,
            current_uses=state.current_uses,
        )


class IChangeNotifier(ABC):
    """
    Realtime change notifier interface - application layer

    Delivery is best-effort. Callers publish only after their transaction
    committed and never let a publish failure change their outcome.
    """

    @abstractmethod
    async def publish(self, event: InvitationChangeEvent) -> None:
        """Publish an event to every subscriber of the event's organization"""
        pass

    @abstractmethod
    def stream(self, organization_id: UUID) -> AsyncIterator[InvitationChangeEvent]:
        """Async iterator of events for one organization, until the consumer stops"""
        pass

    async def close(self) -> None:
        """Release transport resources"""
        return None


async def notify_safely(notifier: IChangeNotifier, event: InvitationChangeEvent) -> bool:
    """
    Publish without letting transport failures reach the caller.

    Returns:
        True if the notifier accepted the event
    """
    try:
        await notifier.publish(event)
        return True
    except Exception as e:
        logger.warning(
            f"Change notification for invitation {event.invitation_id} not delivered: {e}"
        )
        return False
