"""
Access Use Case DTOs (Data Transfer Objects)

Command and Response classes for gate access.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.app.use_cases.invitations.dtos import InvitationSnapshot
from src.domain.entities import (
    AccessDenialReason,
    AccessDirection,
    AccessLogEntry,
    AccessMethod,
)


# ============================================================================
# Command DTOs
# ============================================================================


class ManualEntryCommand(BaseModel):
    """Gate entry registered by an attendant without an invitation"""

    visitor_name: str = Field(..., min_length=1, max_length=255)
    unit_id: Optional[UUID] = None
    direction: AccessDirection = AccessDirection.entry
    notes: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class AuthorizationResult(BaseModel):
    """
    Outcome of a redemption attempt.

    Every expected rejection, including a missing capability or an unknown
    code, is expressed here rather than raised.
    """

    granted: bool
    reason: Optional[AccessDenialReason] = None
    invitation_snapshot: Optional[InvitationSnapshot] = None
    access_log_id: Optional[UUID] = None

    @classmethod
    def grant(cls, snapshot: InvitationSnapshot, access_log_id: UUID) -> "AuthorizationResult":
        return cls(granted=True, invitation_snapshot=snapshot, access_log_id=access_log_id)

    @classmethod
    def denied(
        cls, reason: AccessDenialReason, snapshot: Optional[InvitationSnapshot] = None
    ) -> "AuthorizationResult":
        return cls(granted=False, reason=reason, invitation_snapshot=snapshot)


class AccessLogEntryResponse(BaseModel):
    """Single access log entry in responses"""

    id: UUID
    invitation_id: Optional[UUID]
    unit_id: Optional[UUID]
    visitor_name: str
    granted_by: UUID
    direction: AccessDirection
    method: AccessMethod
    notes: Optional[str]
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: AccessLogEntry) -> "AccessLogEntryResponse":
        return cls(
            id=entry.id,
            invitation_id=entry.invitation_id,
            unit_id=entry.unit_id,
            visitor_name=entry.visitor_name,
            granted_by=entry.granted_by,
            direction=entry.direction,
            method=entry.method,
            notes=entry.notes,
            created_at=entry.created_at,
        )


class AccessLogPage(BaseModel):
    """Response for list access logs use case"""

    entries: List[AccessLogEntryResponse]
    next_cursor: Optional[str]
