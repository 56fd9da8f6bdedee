from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.store_errors import store_errors
from src.app.repositories.invitation_repository import IInvitationRepository
from src.domain.entities import (
    Invitation,
    InvitationStatus,
    InvitationVersion,
    utc_now,
)


class InvitationRepository(IInvitationRepository):
    """Invitation repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        """Get invitation by ID, bypassing the session identity map"""
        stmt = (
            select(Invitation)
            .where(Invitation.id == invitation_id)
            .execution_options(populate_existing=True)
        )
        with store_errors("find_by_id"):
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_code(self, short_code: str) -> Optional[Invitation]:
        """Get invitation by short code (stored upper-case)"""
        stmt = (
            select(Invitation)
            .where(Invitation.short_code == short_code.strip().upper())
            .execution_options(populate_existing=True)
        )
        with store_errors("find_by_code"):
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def conditional_transition(
        self,
        invitation_id: UUID,
        expected: InvitationVersion,
        next_state: InvitationVersion,
    ) -> bool:
        """Single-statement compare-and-swap on (status, current_uses)"""
        stmt = (
            update(Invitation)
            .where(
                Invitation.id == invitation_id,
                Invitation.status == expected.status,
                Invitation.current_uses == expected.current_uses,
            )
            .values(
                status=next_state.status,
                current_uses=next_state.current_uses,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        with store_errors("conditional_transition"):
            result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation"""
        with store_errors("create_invitation"):
            self.session.add(invitation)
            await self.session.flush()
            await self.session.refresh(invitation)
        return invitation

    async def list_by_unit(
        self,
        unit_id: UUID,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> List[Invitation]:
        """List invitations for a unit, newest first"""
        stmt = select(Invitation).where(Invitation.unit_id == unit_id)
        return await self._list(stmt, statuses)

    async def list_by_organization(
        self,
        organization_id: UUID,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> List[Invitation]:
        """List invitations for an organization, newest first"""
        stmt = select(Invitation).where(Invitation.organization_id == organization_id)
        return await self._list(stmt, statuses)

    async def list_by_creator(
        self,
        organization_id: UUID,
        created_by: UUID,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> List[Invitation]:
        """List invitations issued by one user, newest first"""
        stmt = select(Invitation).where(
            Invitation.organization_id == organization_id,
            Invitation.created_by == created_by,
        )
        return await self._list(stmt, statuses)

    async def find_stale_active(self, now: datetime, limit: int = 100) -> List[Invitation]:
        """Invitations stored as active whose valid_until has passed"""
        stmt = (
            select(Invitation)
            .where(
                Invitation.status == InvitationStatus.active,
                Invitation.valid_until.is_not(None),
                Invitation.valid_until < now,
            )
            .order_by(Invitation.valid_until)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        with store_errors("find_stale_active"):
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def _list(self, stmt, statuses) -> List[Invitation]:
        if statuses:
            stmt = stmt.where(Invitation.status.in_(list(statuses)))
        stmt = stmt.order_by(Invitation.created_at.desc()).execution_options(populate_existing=True)
        with store_errors("list_invitations"):
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
