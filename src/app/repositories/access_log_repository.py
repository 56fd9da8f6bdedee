from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from uuid import UUID

from src.domain.entities import AccessLogEntry


class IAccessLogRepository(ABC):
    """AccessLogEntry repository interface - application layer"""

    @abstractmethod
    async def append(self, entry: AccessLogEntry) -> AccessLogEntry:
        """Append a new access log entry (immutable)"""
        pass

    @abstractmethod
    async def list_by_organization_paginated(
        self, organization_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AccessLogEntry], Optional[str]]:
        """
        Get access log entries for an organization with cursor-based pagination.

        Returns:
            Tuple of (entries list, next_cursor)
            - entries: List of entries ordered by (created_at, id) DESC
            - next_cursor: Cursor for next page, None if no more entries

        Raises:
            InvalidCursorError: cursor was not issued by this repository
        """
        pass
