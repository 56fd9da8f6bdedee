"""
Invitation Use Case DTOs (Data Transfer Objects)

Command and Response classes for the invitation domain.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.domain.entities import (
    AccessDenialReason,
    AccessType,
    Invitation,
    InvitationStatus,
    InvitationVersion,
)


# ============================================================================
# Command DTOs
# ============================================================================


class CreateInvitationCommand(BaseModel):
    """Data a resident provides when issuing an invitation"""

    visitor_name: str = Field(..., min_length=1, max_length=255)
    visitor_phone: Optional[str] = Field(None, max_length=50)
    visitor_email: Optional[EmailStr] = None
    access_type: AccessType = AccessType.single
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = None
    notes: Optional[str] = None
    unit_id: Optional[UUID] = None


# ============================================================================
# Response DTOs
# ============================================================================


class InvitationSnapshot(BaseModel):
    """Invitation state as seen by a caller at one instant"""

    id: UUID
    organization_id: UUID
    unit_id: UUID
    created_by: UUID
    visitor_name: str
    access_type: AccessType
    status: InvitationStatus
    current_uses: int
    max_uses: Optional[int]
    short_code: str
    qr_code: str
    valid_from: Optional[datetime]
    valid_until: Optional[datetime]

    @classmethod
    def from_invitation(
        cls, invitation: Invitation, state: Optional[InvitationVersion] = None
    ) -> "InvitationSnapshot":
        """Snapshot of a record, optionally with a just-committed state applied"""
        status = state.status if state else invitation.status
        current_uses = state.current_uses if state else invitation.current_uses
        return cls(
            id=invitation.id,
            organization_id=invitation.organization_id,
            unit_id=invitation.unit_id,
            created_by=invitation.created_by,
            visitor_name=invitation.visitor_name,
            access_type=invitation.access_type,
            status=status,
            current_uses=current_uses,
            max_uses=invitation.max_uses,
            short_code=invitation.short_code,
            qr_code=invitation.qr_code,
            valid_from=invitation.valid_from,
            valid_until=invitation.valid_until,
        )


class InvitationDetail(InvitationSnapshot):
    """Full invitation view for residents and staff"""

    visitor_phone: Optional[str]
    visitor_email: Optional[str]
    notes: Optional[str]
    effective_status: InvitationStatus
    created_at: datetime

    @classmethod
    def from_record(cls, invitation: Invitation, effective_status: InvitationStatus) -> "InvitationDetail":
        snapshot = InvitationSnapshot.from_invitation(invitation)
        return cls(
            **snapshot.model_dump(),
            visitor_phone=invitation.visitor_phone,
            visitor_email=invitation.visitor_email,
            notes=invitation.notes,
            effective_status=effective_status,
            created_at=invitation.created_at,
        )


class InvitationListResponse(BaseModel):
    """Response for list invitations use case"""

    invitations: List[InvitationDetail]


class CancellationResult(BaseModel):
    """Outcome of a cancel request; rejections are values, not errors"""

    success: bool
    reason: Optional[AccessDenialReason] = None
    invitation_snapshot: Optional[InvitationSnapshot] = None

    @classmethod
    def cancelled(cls, snapshot: InvitationSnapshot) -> "CancellationResult":
        return cls(success=True, invitation_snapshot=snapshot)

    @classmethod
    def denied(
        cls, reason: AccessDenialReason, snapshot: Optional[InvitationSnapshot] = None
    ) -> "CancellationResult":
        return cls(success=False, reason=reason, invitation_snapshot=snapshot)


class ExpireInvitationsResponse(BaseModel):
    """Response for the stale-invitation sweep"""

    examined: int
    expired: int
