"""
Authorize Access Use Case

Redeems an invitation at the gate. This is the only place where concurrent
attendants race for the same invitation, so every write goes through the
store's conditional transition.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from libs.result import Error, Result, Return
from src.app.services.change_notifier import (
    IChangeNotifier,
    InvitationChangeEvent,
    notify_safely,
)
from src.app.services.invitation_codes import DEFAULT_QR_PREFIX, CodeLookup, parse_code
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_engine import evaluate
from src.app.use_cases.invitations.dtos import InvitationSnapshot
from src.domain.entities import (
    AccessDenialReason,
    AccessDirection,
    AccessLogEntry,
    Actor,
    Capability,
    Invitation,
    utc_now,
)
from src.domain.errors import StoreUnavailableError

from .dtos import AuthorizationResult

logger = logging.getLogger(__name__)

GATE_CAPABILITIES = (Capability.access_scan, Capability.access_manual)

# First attempt plus one re-fetch after a lost race
MAX_REDEMPTION_ATTEMPTS = 2


class AuthorizeAccessUseCase:
    """
    Use case for redeeming an invitation by short code, QR payload or id.

    Business Rules:
    - Actor must hold access.scan or access.manual, else `unauthorized`
    - Unknown codes and other organizations' invitations are `not_found`
    - Validation outcomes are returned as values, never raised
    - The transition is a compare-and-swap on (status, current_uses)
    - A lost race is re-evaluated once; a second loss is `already_used`
    - The access log entry is written in the same transaction as the transition
    - The change event is published after commit and never affects the outcome
    """

    def __init__(
        self,
        uow: UnitOfWork,
        permissions: PermissionEvaluator,
        notifier: IChangeNotifier,
        clock: Callable[[], datetime] = utc_now,
        qr_prefix: str = DEFAULT_QR_PREFIX,
    ):
        self.uow = uow
        self.permissions = permissions
        self.notifier = notifier
        self.clock = clock
        self.qr_prefix = qr_prefix

    async def execute(
        self,
        code: str,
        actor: Actor,
        direction: AccessDirection = AccessDirection.entry,
    ) -> Result[AuthorizationResult]:
        """
        Execute authorize access use case.

        Args:
            code: Short code, QR payload or invitation id
            actor: Attendant (or kiosk) membership
            direction: Entry or exit, recorded on the access log

        Returns:
            Result with AuthorizationResult, or Error STORE_UNAVAILABLE
        """
        if not self.permissions.can_any(actor.role, GATE_CAPABILITIES):
            logger.warning(
                f"Actor {actor.user_id} with role {actor.role!r} attempted gate authorization"
            )
            return Return.ok(AuthorizationResult.denied(AccessDenialReason.unauthorized))

        lookup = parse_code(code, self.qr_prefix)

        try:
            async with self.uow:
                outcome, event = await self._redeem(lookup, actor, direction)
        except StoreUnavailableError as e:
            logger.error(f"Authorization aborted: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        if event is not None:
            await notify_safely(self.notifier, event)

        return Return.ok(outcome)

    async def _redeem(self, lookup: CodeLookup, actor: Actor, direction: AccessDirection):
        invitation = await self._fetch(lookup)
        if invitation is None or invitation.organization_id != actor.organization_id:
            return AuthorizationResult.denied(AccessDenialReason.not_found), None

        for attempt in range(1, MAX_REDEMPTION_ATTEMPTS + 1):
            decision = evaluate(invitation, self.clock())
            if not decision.accepted:
                return (
                    AuthorizationResult.denied(
                        decision.reason, InvitationSnapshot.from_invitation(invitation)
                    ),
                    None,
                )

            committed = await self.uow.invitations.conditional_transition(
                invitation.id, invitation.version(), decision.next_state
            )
            if committed:
                entry = await self.uow.access_logs.append(
                    AccessLogEntry(
                        organization_id=invitation.organization_id,
                        invitation_id=invitation.id,
                        unit_id=invitation.unit_id,
                        visitor_name=invitation.visitor_name,
                        granted_by=actor.user_id,
                        direction=direction,
                        method=lookup.method,
                    )
                )
                snapshot = InvitationSnapshot.from_invitation(invitation, decision.next_state)
                event = InvitationChangeEvent.for_transition(invitation, decision.next_state)
                await self.uow.commit()

                logger.info(
                    f"Invitation {invitation.id} redeemed by {actor.user_id}: "
                    f"{decision.next_state.status.value} ({decision.next_state.current_uses} uses)"
                )
                return AuthorizationResult.grant(snapshot, entry.id), event

            logger.info(f"Lost redemption race for invitation {invitation.id} (attempt {attempt})")
            if attempt == MAX_REDEMPTION_ATTEMPTS:
                break

            invitation = await self.uow.invitations.find_by_id(invitation.id)
            if invitation is None:
                return AuthorizationResult.denied(AccessDenialReason.not_found), None

        return (
            AuthorizationResult.denied(
                AccessDenialReason.already_used, InvitationSnapshot.from_invitation(invitation)
            ),
            None,
        )

    async def _fetch(self, lookup: CodeLookup) -> Optional[Invitation]:
        if lookup.invitation_id is not None:
            return await self.uow.invitations.find_by_id(lookup.invitation_id)
        if lookup.short_code:
            return await self.uow.invitations.find_by_code(lookup.short_code)
        return None
