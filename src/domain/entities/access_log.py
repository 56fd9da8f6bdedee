"""
AccessLogEntry Entity

Immutable audit trail of gate crossings.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import AccessDirection, AccessMethod
from .invitation import utc_now


class AccessLogEntry(SQLModel, table=True):
    """
    AccessLogEntry entity - one row per granted gate crossing.

    Business Rules:
    - Immutable (never updated or deleted)
    - Written only when the invitation transition committed
    - invitation_id is null for manual entries
    """

    __tablename__ = "access_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    organization_id: UUID = Field(nullable=False, index=True)
    invitation_id: Optional[UUID] = Field(default=None, index=True)
    unit_id: Optional[UUID] = Field(default=None, index=True)

    visitor_name: str = Field(max_length=255)
    granted_by: UUID = Field(nullable=False)

    direction: AccessDirection = Field(default=AccessDirection.entry)
    method: AccessMethod = Field(nullable=False)
    notes: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_access_log_org_created_at", "organization_id", "created_at"),
    )
