"""
Invitation Entity

Time-boxed visitor access grant redeemable by short code or QR payload.
"""

from datetime import UTC, datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import AccessType, InvitationStatus


def utc_now() -> datetime:
    """Naive UTC timestamp, the format every stored datetime uses"""
    return datetime.now(UTC).replace(tzinfo=None)


class Invitation(SQLModel, table=True):
    """
    Invitation entity - a visitor access grant issued by a resident.

    Business Rules:
    - short_code is unique, upper-case, matched case-insensitively
    - qr_code encodes the same id as the short code (redundant encoding)
    - status is a committed snapshot; expiry is recomputed from the bounds
    - current_uses never decreases
    - Never deleted, only moved to a terminal status
    """

    __tablename__ = "invitations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    organization_id: UUID = Field(nullable=False, index=True)
    unit_id: UUID = Field(nullable=False, index=True)
    membership_id: Optional[UUID] = Field(default=None)
    created_by: UUID = Field(nullable=False, index=True)

    visitor_name: str = Field(max_length=255, nullable=False)
    visitor_phone: Optional[str] = Field(default=None, max_length=50)
    visitor_email: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None)

    access_type: AccessType = Field(default=AccessType.single)
    max_uses: Optional[int] = Field(default=None)
    current_uses: int = Field(default=0)

    short_code: str = Field(unique=True, index=True, max_length=16)
    qr_code: str = Field(unique=True, max_length=128)

    status: InvitationStatus = Field(default=InvitationStatus.active)

    # Temporal bounds (None = unbounded)
    valid_from: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    valid_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_invitation_status", "status"),
        Index("idx_invitation_valid_until", "valid_until"),
        Index("idx_invitation_unit_status", "unit_id", "status"),
    )

    def version(self) -> "InvitationVersion":
        """The (status, current_uses) pair the conditional transition compares against"""
        return InvitationVersion(status=self.status, current_uses=self.current_uses)


class InvitationVersion(BaseModel):
    """Observable state of an invitation used for compare-and-swap"""

    model_config = ConfigDict(frozen=True)

    status: InvitationStatus
    current_uses: int


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an aware datetime to naive UTC; naive values are assumed UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
