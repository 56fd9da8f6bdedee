"""
Gate Access Domain Entities

All domain entities organized by model.
"""

from .enums import (
    AccessDenialReason,
    AccessDirection,
    AccessMethod,
    AccessType,
    InvitationStatus,
    MembershipRole,
)
from .capabilities import ALL_CAPABILITIES, DEFAULT_ROLE_CAPABILITIES, Capability
from .invitation import Invitation, InvitationVersion, to_naive_utc, utc_now
from .access_log import AccessLogEntry
from .actor import Actor

__all__ = [
    # Enums
    "AccessDenialReason",
    "AccessDirection",
    "AccessMethod",
    "AccessType",
    "InvitationStatus",
    "MembershipRole",
    # Capabilities
    "ALL_CAPABILITIES",
    "DEFAULT_ROLE_CAPABILITIES",
    "Capability",
    # Entities
    "Invitation",
    "InvitationVersion",
    "AccessLogEntry",
    "Actor",
    "to_naive_utc",
    "utc_now",
]
