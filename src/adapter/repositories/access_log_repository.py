import base64
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.store_errors import store_errors
from src.app.repositories.access_log_repository import IAccessLogRepository
from src.domain.entities import AccessLogEntry
from src.domain.errors import InvalidCursorError


def encode_cursor(entry: AccessLogEntry) -> str:
    raw = f"{entry.created_at.isoformat()}|{entry.id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("utf-8")


def decode_cursor(cursor: str) -> Tuple[datetime, UUID]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("utf-8")).decode("utf-8")
        timestamp, entry_id = raw.split("|")
        return datetime.fromisoformat(timestamp), UUID(entry_id)
    except ValueError:
        raise InvalidCursorError(cursor) from None


class AccessLogRepository(IAccessLogRepository):
    """AccessLogEntry repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: AccessLogEntry) -> AccessLogEntry:
        """Append a new access log entry (immutable)"""
        with store_errors("append_access_log"):
            self.session.add(entry)
            await self.session.flush()
            await self.session.refresh(entry)
        return entry

    async def list_by_organization_paginated(
        self, organization_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AccessLogEntry], Optional[str]]:
        """
        Get access log entries for an organization with keyset pagination.

        Cursor format: base64 of "<created_at ISO>|<id>" of the last entry
        returned. Entries sharing a timestamp are ordered by id.

        Raises:
            InvalidCursorError: cursor does not decode
        """
        stmt = select(AccessLogEntry).where(
            AccessLogEntry.organization_id == organization_id
        )

        if cursor:
            cursor_timestamp, cursor_id = decode_cursor(cursor)
            stmt = stmt.where(
                or_(
                    AccessLogEntry.created_at < cursor_timestamp,
                    and_(
                        AccessLogEntry.created_at == cursor_timestamp,
                        AccessLogEntry.id < cursor_id,
                    ),
                )
            )

        # Newest first; fetch one extra row to know whether another page exists
        stmt = stmt.order_by(
            AccessLogEntry.created_at.desc(), AccessLogEntry.id.desc()
        ).limit(limit + 1)

        with store_errors("list_access_logs"):
            result = await self.session.exec(stmt)
            entries = list(result.all())

        has_more = len(entries) > limit
        if has_more:
            entries = entries[:limit]

        next_cursor = encode_cursor(entries[-1]) if has_more and entries else None
        return entries, next_cursor
