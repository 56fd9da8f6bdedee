"""
Create Invitation Use Case

Residents issue visitor invitations for their unit.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from libs.result import Error, Result, Return
from src.app.services.change_notifier import (
    IChangeNotifier,
    InvitationChangeEvent,
    notify_safely,
)
from src.app.services.invitation_codes import (
    DEFAULT_QR_PREFIX,
    DEFAULT_SHORT_CODE_LENGTH,
    build_qr_payload,
    generate_short_code,
)
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import (
    AccessType,
    Actor,
    Capability,
    Invitation,
    InvitationStatus,
    to_naive_utc,
    utc_now,
)
from src.domain.errors import StoreUnavailableError

from .dtos import CreateInvitationCommand, InvitationSnapshot

logger = logging.getLogger(__name__)

MAX_SHORT_CODE_ATTEMPTS = 5


class CreateInvitationUseCase:
    """
    Use case for issuing a visitor invitation.

    Business Rules:
    - Actor must hold invitations.create
    - Unit defaults to the actor's unit; another unit needs invitations.view.all
    - multiple requires max_uses >= 1; other types store no cap
    - temporary requires valid_until
    - valid_until must be after valid_from (valid_from defaults to now)
    - Short code is unique; regenerated on collision
    - A change event is published after commit so unit screens refresh
    """

    def __init__(
        self,
        uow: UnitOfWork,
        permissions: PermissionEvaluator,
        notifier: IChangeNotifier,
        clock: Callable[[], datetime] = utc_now,
        qr_prefix: str = DEFAULT_QR_PREFIX,
        short_code_length: int = DEFAULT_SHORT_CODE_LENGTH,
    ):
        self.uow = uow
        self.permissions = permissions
        self.notifier = notifier
        self.clock = clock
        self.qr_prefix = qr_prefix
        self.short_code_length = short_code_length

    async def execute(
        self, actor: Actor, command: CreateInvitationCommand
    ) -> Result[InvitationSnapshot]:
        """
        Execute create invitation use case.

        Args:
            actor: Issuing member
            command: Visitor details and access policy

        Returns:
            Result with the new InvitationSnapshot, or Error
        """
        if not self.permissions.can(actor.role, Capability.invitations_create):
            return Return.err(
                Error(
                    "INSUFFICIENT_PERMISSION",
                    "You do not have permission to create invitations",
                )
            )

        unit_id = command.unit_id or actor.unit_id
        if unit_id is None:
            return Return.err(
                Error("UNIT_REQUIRED", "A destination unit is required for the invitation")
            )
        if unit_id != actor.unit_id and not self.permissions.can(
            actor.role, Capability.invitations_view_all
        ):
            return Return.err(
                Error(
                    "INSUFFICIENT_PERMISSION",
                    "You can only create invitations for your own unit",
                )
            )

        valid_from = to_naive_utc(command.valid_from) or self.clock()
        valid_until = to_naive_utc(command.valid_until)

        policy_error = self._check_policy(command, valid_from, valid_until)
        if policy_error is not None:
            return Return.err(policy_error)

        max_uses = command.max_uses if command.access_type == AccessType.multiple else None

        try:
            async with self.uow:
                short_code = await self._unique_short_code()
                if short_code is None:
                    logger.error("Could not allocate a unique short code")
                    return Return.err(
                        Error(
                            "SHORT_CODE_EXHAUSTED",
                            "Could not allocate an invitation code, please retry",
                        )
                    )

                invitation_id = uuid4()
                invitation = await self.uow.invitations.create(
                    Invitation(
                        id=invitation_id,
                        organization_id=actor.organization_id,
                        unit_id=unit_id,
                        membership_id=actor.membership_id,
                        created_by=actor.user_id,
                        visitor_name=command.visitor_name,
                        visitor_phone=command.visitor_phone,
                        visitor_email=command.visitor_email,
                        notes=command.notes,
                        access_type=command.access_type,
                        max_uses=max_uses,
                        current_uses=0,
                        short_code=short_code,
                        qr_code=build_qr_payload(invitation_id, self.qr_prefix),
                        status=InvitationStatus.active,
                        valid_from=valid_from,
                        valid_until=valid_until,
                    )
                )
                snapshot = InvitationSnapshot.from_invitation(invitation)
                event = InvitationChangeEvent.for_transition(invitation, invitation.version())
                await self.uow.commit()
        except StoreUnavailableError as e:
            logger.error(f"Invitation not created: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        logger.info(f"Invitation {snapshot.id} created by {actor.user_id} for unit {unit_id}")
        await notify_safely(self.notifier, event)
        return Return.ok(snapshot)

    def _check_policy(
        self,
        command: CreateInvitationCommand,
        valid_from: datetime,
        valid_until: Optional[datetime],
    ) -> Optional[Error]:
        if command.access_type == AccessType.multiple:
            if command.max_uses is None or command.max_uses < 1:
                return Error(
                    "INVALID_ACCESS_POLICY",
                    "Multiple-use invitations need max_uses of at least 1",
                )

        if command.access_type == AccessType.temporary and valid_until is None:
            return Error(
                "INVALID_ACCESS_POLICY",
                "Temporary invitations need a valid_until",
            )

        if valid_until is not None and valid_until <= valid_from:
            return Error(
                "INVALID_ACCESS_POLICY",
                "valid_until must be later than valid_from",
            )

        return None

    async def _unique_short_code(self) -> Optional[str]:
        for _ in range(MAX_SHORT_CODE_ATTEMPTS):
            candidate = generate_short_code(self.short_code_length)
            if await self.uow.invitations.find_by_code(candidate) is None:
                return candidate
        return None
