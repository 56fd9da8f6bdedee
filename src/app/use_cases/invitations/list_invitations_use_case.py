"""
List Invitations Use Case

Lists invitations scoped by the actor's view capabilities.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_engine import effective_status
from src.domain.entities import Actor, Capability, Invitation, InvitationStatus, utc_now
from src.domain.errors import StoreUnavailableError

from .dtos import InvitationDetail, InvitationListResponse

logger = logging.getLogger(__name__)


class ListInvitationsUseCase:
    """
    Use case for listing invitations.

    Business Rules:
    - unit_id given: needs invitations.view.all, or invitations.view.unit for
      the actor's own unit
    - no unit_id: widest scope the actor holds (organization, unit, own)
    - statuses filters on stored status
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

    async def execute(
        self,
        actor: Actor,
        unit_id: Optional[UUID] = None,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> Result[InvitationListResponse]:
        can_all = self.permissions.can(actor.role, Capability.invitations_view_all)
        can_unit = self.permissions.can(actor.role, Capability.invitations_view_unit)
        can_own = self.permissions.can(actor.role, Capability.invitations_view_own)

        if unit_id is not None and not (can_all or (can_unit and unit_id == actor.unit_id)):
            return Return.err(
                Error(
                    "INSUFFICIENT_PERMISSION",
                    "You do not have permission to view invitations of this unit",
                )
            )
        if unit_id is None and not (can_all or can_unit or can_own):
            return Return.err(
                Error(
                    "INSUFFICIENT_PERMISSION",
                    "You do not have permission to view invitations",
                )
            )

        try:
            async with self.uow:
                invitations = await self._load(actor, unit_id, statuses, can_all, can_unit)
        except StoreUnavailableError as e:
            logger.error(f"Invitation listing failed: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        now = self.clock()
        return Return.ok(
            InvitationListResponse(
                invitations=[
                    InvitationDetail.from_record(inv, effective_status(inv, now))
                    for inv in invitations
                    # Unit listings are unscoped by organization in the store
                    if inv.organization_id == actor.organization_id
                ]
            )
        )

    async def _load(
        self,
        actor: Actor,
        unit_id: Optional[UUID],
        statuses: Optional[Sequence[InvitationStatus]],
        can_all: bool,
        can_unit: bool,
    ) -> List[Invitation]:
        if unit_id is not None:
            return await self.uow.invitations.list_by_unit(unit_id, statuses)
        if can_all:
            return await self.uow.invitations.list_by_organization(actor.organization_id, statuses)
        if can_unit and actor.unit_id is not None:
            return await self.uow.invitations.list_by_unit(actor.unit_id, statuses)
        return await self.uow.invitations.list_by_creator(
            actor.organization_id, actor.user_id, statuses
        )
