from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig


def create_access_token(
    user_id: UUID,
    tenant_id: UUID,
    role: str,
    membership_id: Optional[UUID] = None,
    unit_id: Optional[UUID] = None,
    expires_delta: timedelta = timedelta(minutes=15),
) -> str:
    """
    Create JWT access token carrying the caller's membership

    Tokens are issued by the identity service; this helper exists for
    kiosks provisioned with long-lived tokens and for tests.

    Args:
        user_id: User UUID
        tenant_id: Organization UUID
        role: Membership role (resident, guard, admin, super_admin)
        membership_id: Membership UUID
        unit_id: Unit the membership is bound to
        expires_delta: Token expiration duration

    Returns:
        JWT token string (HS256)
    """
    now = datetime.now(UTC)
    payload = {
        "user_id": str(user_id),
        "tenant_id": str(tenant_id),
        "role": role,
        "membership_id": str(membership_id) if membership_id else None,
        "unit_id": str(unit_id) if unit_id else None,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
