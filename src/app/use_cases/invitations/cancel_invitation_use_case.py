"""
Cancel Invitation Use Case

Moves an active invitation to cancelled through the same conditional
transition redemptions use, so a cancel can never overwrite a redemption
that landed first.
"""

import logging
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.change_notifier import (
    IChangeNotifier,
    InvitationChangeEvent,
    notify_safely,
)
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import (
    AccessDenialReason,
    Actor,
    Capability,
    Invitation,
    InvitationStatus,
    InvitationVersion,
)
from src.domain.errors import StoreUnavailableError

from .dtos import CancellationResult, InvitationSnapshot

logger = logging.getLogger(__name__)

MAX_CANCEL_ATTEMPTS = 2

_BLOCKING_STATUS = {
    InvitationStatus.cancelled: AccessDenialReason.cancelled,
    InvitationStatus.used: AccessDenialReason.already_used,
    InvitationStatus.expired: AccessDenialReason.expired,
}


class CancelInvitationUseCase:
    """
    Use case for cancelling an invitation.

    Business Rules:
    - Actor must hold invitations.cancel or invitations.cancel.all
    - Without invitations.cancel.all only the issuer may cancel
    - Only stored status active can move to cancelled
    - Conflicting writes are re-read once, then reported as already_used
    """

    def __init__(
        self,
        uow: UnitOfWork,
        permissions: PermissionEvaluator,
        notifier: IChangeNotifier,
    ):
        self.uow = uow
        self.permissions = permissions
        self.notifier = notifier

    async def execute(self, invitation_id: UUID, actor: Actor) -> Result[CancellationResult]:
        """
        Execute cancel invitation use case.

        Args:
            invitation_id: Invitation to cancel
            actor: Requesting member

        Returns:
            Result with CancellationResult, or Error STORE_UNAVAILABLE
        """
        if not self.permissions.can_any(
            actor.role, (Capability.invitations_cancel, Capability.invitations_cancel_all)
        ):
            return Return.ok(CancellationResult.denied(AccessDenialReason.unauthorized))

        try:
            async with self.uow:
                outcome, event = await self._cancel(invitation_id, actor)
        except StoreUnavailableError as e:
            logger.error(f"Cancellation aborted: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        if event is not None:
            await notify_safely(self.notifier, event)

        return Return.ok(outcome)

    async def _cancel(self, invitation_id: UUID, actor: Actor):
        invitation = await self.uow.invitations.find_by_id(invitation_id)
        if invitation is None or invitation.organization_id != actor.organization_id:
            return CancellationResult.denied(AccessDenialReason.not_found), None

        if not self._may_cancel(actor, invitation):
            return CancellationResult.denied(AccessDenialReason.unauthorized), None

        for attempt in range(1, MAX_CANCEL_ATTEMPTS + 1):
            reason = _BLOCKING_STATUS.get(invitation.status)
            if reason is not None:
                return (
                    CancellationResult.denied(reason, InvitationSnapshot.from_invitation(invitation)),
                    None,
                )

            next_state = InvitationVersion(
                status=InvitationStatus.cancelled, current_uses=invitation.current_uses
            )
            committed = await self.uow.invitations.conditional_transition(
                invitation.id, invitation.version(), next_state
            )
            if committed:
                snapshot = InvitationSnapshot.from_invitation(invitation, next_state)
                event = InvitationChangeEvent.for_transition(invitation, next_state)
                await self.uow.commit()
                logger.info(f"Invitation {invitation.id} cancelled by {actor.user_id}")
                return CancellationResult.cancelled(snapshot), event

            logger.info(f"Cancel of invitation {invitation.id} lost a race (attempt {attempt})")
            if attempt == MAX_CANCEL_ATTEMPTS:
                break

            invitation = await self.uow.invitations.find_by_id(invitation.id)
            if invitation is None:
                return CancellationResult.denied(AccessDenialReason.not_found), None

        return (
            CancellationResult.denied(
                AccessDenialReason.already_used, InvitationSnapshot.from_invitation(invitation)
            ),
            None,
        )

    def _may_cancel(self, actor: Actor, invitation: Invitation) -> bool:
        if self.permissions.can(actor.role, Capability.invitations_cancel_all):
            return True
        return invitation.created_by == actor.user_id
