from functools import lru_cache
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.in_memory_change_notifier import InMemoryChangeNotifier
from src.adapter.services.redis_change_notifier import RedisChangeNotifier
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.change_notifier import IChangeNotifier
from src.app.services.permission_evaluator import PermissionEvaluator
from src.domain.entities import Actor

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_permission_evaluator() -> PermissionEvaluator:
    """Role table is loaded once per process and frozen"""
    return PermissionEvaluator.from_config(ApplicationConfig)


@lru_cache
def get_change_notifier() -> IChangeNotifier:
    if ApplicationConfig.NOTIFIER_BACKEND == "redis":
        return RedisChangeNotifier(
            ApplicationConfig.REDIS_URL,
            channel_prefix=ApplicationConfig.NOTIFIER_CHANNEL_PREFIX,
        )
    return InMemoryChangeNotifier()


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """
    Dependency to extract the caller's membership from the bearer token.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Actor built from the user_id, tenant_id, role, membership_id and
        unit_id claims

    Raises:
        HTTPException: 401 if token is invalid, expired or missing claims
    """
    payload = verify_jwt(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        return Actor(
            user_id=UUID(payload["user_id"]),
            organization_id=UUID(payload["tenant_id"]),
            role=payload.get("role", ""),
            membership_id=_optional_uuid(payload.get("membership_id")),
            unit_id=_optional_uuid(payload.get("unit_id")),
        )
    except (KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing membership claims",
        )


def _optional_uuid(value):
    return UUID(value) if value else None
