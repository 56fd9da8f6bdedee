"""
Expire Stale Invitations Use Case

Maintenance sweep that refreshes the cached status of invitations whose
valid_until has passed. Redemption never depends on it: expiry is always
recomputed from the bounds at read time.
"""

import logging
from datetime import datetime
from typing import Callable, List

from libs.result import Error, Result, Return
from src.app.services.change_notifier import (
    IChangeNotifier,
    InvitationChangeEvent,
    notify_safely,
)
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import InvitationStatus, InvitationVersion, utc_now
from src.domain.errors import StoreUnavailableError

from .dtos import ExpireInvitationsResponse

logger = logging.getLogger(__name__)


class ExpireStaleInvitationsUseCase:
    """
    Use case for the stale-invitation sweep.

    Business Rules:
    - Only stored status active past valid_until is touched
    - Each record moves through the conditional transition; a record changed
      concurrently is skipped and picked up by the next sweep
    - One change event per expired invitation, after commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: IChangeNotifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.notifier = notifier
        self.clock = clock

    async def execute(self, limit: int = 100) -> Result[ExpireInvitationsResponse]:
        events: List[InvitationChangeEvent] = []

        try:
            async with self.uow:
                stale = await self.uow.invitations.find_stale_active(self.clock(), limit=limit)

                for invitation in stale:
                    next_state = InvitationVersion(
                        status=InvitationStatus.expired,
                        current_uses=invitation.current_uses,
                    )
                    if await self.uow.invitations.conditional_transition(
                        invitation.id, invitation.version(), next_state
                    ):
                        events.append(InvitationChangeEvent.for_transition(invitation, next_state))

                await self.uow.commit()
        except StoreUnavailableError as e:
            logger.error(f"Expiry sweep aborted: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        for event in events:
            await notify_safely(self.notifier, event)

        logger.info(f"Expiry sweep: {len(events)} of {len(stale)} stale invitations expired")
        return Return.ok(ExpireInvitationsResponse(examined=len(stale), expired=len(events)))
