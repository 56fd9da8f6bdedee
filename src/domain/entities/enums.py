"""
Gate Access Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class MembershipRole(str, Enum):
    """Role a member holds within an organization"""

    resident = "resident"
    guard = "guard"
    admin = "admin"
    super_admin = "super_admin"


class InvitationStatus(str, Enum):
    """Committed invitation status (a cached snapshot, not the source of truth for expiry)"""

    active = "active"
    used = "used"
    expired = "expired"
    cancelled = "cancelled"


class AccessType(str, Enum):
    """Usage policy of an invitation"""

    single = "single"
    multiple = "multiple"
    permanent = "permanent"
    temporary = "temporary"


class AccessDirection(str, Enum):
    """Direction of a gate crossing"""

    entry = "entry"
    exit = "exit"


class AccessMethod(str, Enum):
    """How the visitor was identified at the gate"""

    qr = "qr"
    code = "code"
    manual = "manual"


class AccessDenialReason(str, Enum):
    """Why an authorization or cancellation did not go through"""

    not_found = "not_found"
    unauthorized = "unauthorized"
    cancelled = "cancelled"
    already_used = "already_used"
    expired = "expired"
    not_yet_valid = "not_yet_valid"
    quota_exhausted = "quota_exhausted"
