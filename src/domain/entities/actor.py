"""
Actor

The caller's membership as carried by its session token.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class Actor(BaseModel):
    """
    Membership of the calling user in one organization.

    role is kept as a plain string: an unknown role simply resolves to no
    capabilities.
    """

    user_id: UUID
    organization_id: UUID
    role: str
    membership_id: Optional[UUID] = None
    unit_id: Optional[UUID] = None
