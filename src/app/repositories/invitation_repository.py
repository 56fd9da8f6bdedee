from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from src.domain.entities import Invitation, InvitationStatus, InvitationVersion


class IInvitationRepository(ABC):
    """Invitation repository interface - application layer"""

    @abstractmethod
    async def find_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        """Get invitation by ID, always reading the latest committed state"""
        pass

    @abstractmethod
    async def find_by_code(self, short_code: str) -> Optional[Invitation]:
        """Get invitation by short code (case-insensitive)"""
        pass

    @abstractmethod
    async def conditional_transition(
        self,
        invitation_id: UUID,
        expected: InvitationVersion,
        next_state: InvitationVersion,
    ) -> bool:
        """
        Atomically move an invitation from `expected` to `next_state`.

        Returns:
            True if the stored (status, current_uses) matched `expected` and
            the update was applied, False if another writer got there first.
        """
        pass

    @abstractmethod
    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation"""
        pass

    @abstractmethod
    async def list_by_unit(
        self,
        unit_id: UUID,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> List[Invitation]:
        """List invitations for a unit, newest first"""
        pass

    @abstractmethod
    async def list_by_organization(
        self,
        organization_id: UUID,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> List[Invitation]:
        """List invitations for an organization, newest first"""
        pass

    @abstractmethod
    async def list_by_creator(
        self,
        organization_id: UUID,
        created_by: UUID,
        statuses: Optional[Sequence[InvitationStatus]] = None,
    ) -> List[Invitation]:
        """List invitations issued by one user, newest first"""
        pass

    @abstractmethod
    async def find_stale_active(self, now: datetime, limit: int = 100) -> List[Invitation]:
        """Invitations still stored as active whose valid_until has passed"""
        pass
