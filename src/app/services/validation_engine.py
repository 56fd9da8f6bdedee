"""
Validation Engine

Decides whether an invitation may be redeemed at a given instant and, if so,
which state the redemption moves it to. Pure: no I/O, no clock reads.

Checks run in a fixed order and the first match wins:

1. cancelled                         -> cancelled
2. used (anything but multiple)      -> already_used
3. now > valid_until                 -> expired (stored status is ignored)
4. stored as expired                 -> expired
5. now < valid_from                  -> not_yet_valid
6. multiple and quota reached        -> quota_exhausted
7. otherwise                         -> accept with the next state
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from src.domain.entities import (
    AccessDenialReason,
    AccessType,
    Invitation,
    InvitationStatus,
    InvitationVersion,
    to_naive_utc,
)


class Decision(BaseModel):
    """Outcome of evaluating an invitation"""

    model_config = ConfigDict(frozen=True)

    accepted: bool
    reason: Optional[AccessDenialReason] = None
    next_state: Optional[InvitationVersion] = None

    @classmethod
    def accept(cls, next_state: InvitationVersion) -> "Decision":
        return cls(accepted=True, next_state=next_state)

    @classmethod
    def reject(cls, reason: AccessDenialReason) -> "Decision":
        return cls(accepted=False, reason=reason)


def evaluate(invitation: Invitation, now: datetime) -> Decision:
    """
    Evaluate an invitation for redemption at `now`.

    Args:
        invitation: Record as read from the store
        now: Current instant (naive UTC or aware)

    Returns:
        Decision with either a denial reason or the next state
    """
    now = to_naive_utc(now)
    valid_from = to_naive_utc(invitation.valid_from)
    valid_until = to_naive_utc(invitation.valid_until)

    if invitation.status == InvitationStatus.cancelled:
        return Decision.reject(AccessDenialReason.cancelled)

    if (
        invitation.status == InvitationStatus.used
        and invitation.access_type != AccessType.multiple
    ):
        return Decision.reject(AccessDenialReason.already_used)

    if valid_until is not None and now > valid_until:
        return Decision.reject(AccessDenialReason.expired)

    # The sweep only writes `expired` past valid_until; never revive such a record
    if invitation.status == InvitationStatus.expired:
        return Decision.reject(AccessDenialReason.expired)

    if valid_from is not None and now < valid_from:
        return Decision.reject(AccessDenialReason.not_yet_valid)

    if invitation.access_type == AccessType.multiple and _quota_reached(invitation):
        return Decision.reject(AccessDenialReason.quota_exhausted)

    return Decision.accept(next_state(invitation))


def next_state(invitation: Invitation) -> InvitationVersion:
    """State after one more successful redemption"""
    if invitation.access_type == AccessType.single:
        return InvitationVersion(status=InvitationStatus.used, current_uses=1)

    uses = invitation.current_uses + 1

    if invitation.access_type == AccessType.multiple:
        status = (
            InvitationStatus.used
            if uses == invitation.max_uses
            else InvitationStatus.active
        )
        return InvitationVersion(status=status, current_uses=uses)

    # permanent / temporary: usage is counted for audit only
    return InvitationVersion(status=InvitationStatus.active, current_uses=uses)


def _quota_reached(invitation: Invitation) -> bool:
    # A multiple-use invitation without a cap fails closed
    if invitation.max_uses is None:
        return True
    return invitation.current_uses >= invitation.max_uses


def effective_status(invitation: Invitation, now: datetime) -> InvitationStatus:
    """Stored status corrected for time-based expiry the store has not caught up with"""
    valid_until = to_naive_utc(invitation.valid_until)
    if (
        invitation.status == InvitationStatus.active
        and valid_until is not None
        and to_naive_utc(now) > valid_until
    ):
        return InvitationStatus.expired
    return invitation.status
