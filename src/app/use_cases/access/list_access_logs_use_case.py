"""
List Access Logs Use Case

Retrieves the organization's gate log with pagination.
"""

import logging
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Actor, Capability
from src.domain.errors import InvalidCursorError, StoreUnavailableError

from .dtos import AccessLogEntryResponse, AccessLogPage

logger = logging.getLogger(__name__)


class ListAccessLogsUseCase:
    """
    Use case for retrieving access log entries.

    Business Rules:
    - Actor must hold access.logs.view
    - Results are organization-scoped
    - Results ordered by newest first
    - Supports cursor-based pagination
    - A cursor that does not decode is an INVALID_CURSOR error
    """

    def __init__(self, uow: UnitOfWork, permissions: PermissionEvaluator):
        self.uow = uow
        self.permissions = permissions

    async def execute(
        self, actor: Actor, limit: int = 50, cursor: Optional[str] = None
    ) -> Result[AccessLogPage]:
        if not self.permissions.can(actor.role, Capability.access_logs_view):
            return Return.err(
                Error(
                    "INSUFFICIENT_PERMISSION",
                    "You do not have permission to view access logs",
                )
            )

        try:
            async with self.uow:
                entries, next_cursor = await self.uow.access_logs.list_by_organization_paginated(
                    actor.organization_id, limit=limit, cursor=cursor
                )
        except InvalidCursorError as e:
            logger.warning(f"Access log listing rejected: {e}")
            return Return.err(Error("INVALID_CURSOR", "Pagination cursor is not valid"))
        except StoreUnavailableError as e:
            logger.error(f"Access logs unavailable: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        return Return.ok(
            AccessLogPage(
                entries=[AccessLogEntryResponse.from_entry(e) for e in entries],
                next_cursor=next_cursor,
            )
        )
