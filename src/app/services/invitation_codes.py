"""
Invitation codes: short human-enterable codes and long-form QR payloads.
"""

import secrets
from typing import NamedTuple, Optional
from uuid import UUID

from src.domain.entities import AccessMethod

DEFAULT_QR_PREFIX = "GATEPASS:"
DEFAULT_SHORT_CODE_LENGTH = 6

# No 0/O or 1/I, so codes survive being read aloud or typed at a kiosk
SHORT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class CodeLookup(NamedTuple):
    """How a submitted code resolves to a store lookup"""

    invitation_id: Optional[UUID]
    short_code: Optional[str]
    method: AccessMethod


def generate_short_code(length: int = DEFAULT_SHORT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


def build_qr_payload(invitation_id: UUID, prefix: str = DEFAULT_QR_PREFIX) -> str:
    return f"{prefix}{invitation_id}"


def parse_code(raw: str, qr_prefix: str = DEFAULT_QR_PREFIX) -> CodeLookup:
    """
    Resolve a submitted value to an id or short-code lookup.

    - "<prefix><uuid>" is a QR payload
    - a bare UUID is an id (scanned from an older QR or typed by support)
    - anything else is a short code, matched case-insensitively

    A QR payload whose id does not parse yields a lookup with neither an id
    nor a code, which callers treat as not found.
    """
    value = (raw or "").strip()

    if qr_prefix and value.upper().startswith(qr_prefix.upper()):
        return CodeLookup(_parse_uuid(value[len(qr_prefix):]), None, AccessMethod.qr)

    invitation_id = _parse_uuid(value)
    if invitation_id is not None:
        return CodeLookup(invitation_id, None, AccessMethod.qr)

    return CodeLookup(None, value.upper() or None, AccessMethod.code)


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value.strip())
    except ValueError:
        return None
