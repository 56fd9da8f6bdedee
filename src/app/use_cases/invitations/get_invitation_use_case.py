"""
Get Invitation Use Case
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_engine import effective_status
from src.domain.entities import Actor, utc_now
from src.domain.errors import StoreUnavailableError

from .dtos import InvitationDetail
from .visibility import can_view

logger = logging.getLogger(__name__)


class GetInvitationUseCase:
    """
    Use case for reading one invitation.

    Invitations the actor may not see are reported as not found.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        permissions: PermissionEvaluator,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.permissions = permissions
        self.clock = clock

    async def execute(self, invitation_id: UUID, actor: Actor) -> Result[InvitationDetail]:
        try:
            async with self.uow:
                invitation = await self.uow.invitations.find_by_id(invitation_id)
        except StoreUnavailableError as e:
            logger.error(f"Invitation lookup failed: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        if invitation is None or not can_view(self.permissions, actor, invitation):
            return Return.err(Error("INVITATION_NOT_FOUND", "Invitation not found"))

        return Return.ok(
            InvitationDetail.from_record(invitation, effective_status(invitation, self.clock()))
        )
