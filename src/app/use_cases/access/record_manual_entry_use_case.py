"""
Record Manual Entry Use Case

Registers a gate crossing the attendant approved without an invitation.
"""

import logging

from libs.result import Error, Result, Return
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AccessLogEntry, AccessMethod, Actor, Capability
from src.domain.errors import StoreUnavailableError

from .dtos import AccessLogEntryResponse, ManualEntryCommand

logger = logging.getLogger(__name__)


class RecordManualEntryUseCase:
    """
    Use case for manual gate entries.

    Business Rules:
    - Actor must hold access.manual
    - Entry has no invitation and method=manual
    - Log entries are append-only
    """

    def __init__(self, uow: UnitOfWork, permissions: PermissionEvaluator):
        self.uow = uow
        self.permissions = permissions

    async def execute(
        self, actor: Actor, command: ManualEntryCommand
    ) -> Result[AccessLogEntryResponse]:
        if not self.permissions.can(actor.role, Capability.access_manual):
            return Return.err(
                Error(
                    "INSUFFICIENT_PERMISSION",
                    "You do not have permission to register manual entries",
                )
            )

        try:
            async with self.uow:
                entry = await self.uow.access_logs.append(
                    AccessLogEntry(
                        organization_id=actor.organization_id,
                        invitation_id=None,
                        unit_id=command.unit_id,
                        visitor_name=command.visitor_name,
                        granted_by=actor.user_id,
                        direction=command.direction,
                        method=AccessMethod.manual,
                        notes=command.notes,
                    )
                )
                response = AccessLogEntryResponse.from_entry(entry)
                await self.uow.commit()
        except StoreUnavailableError as e:
            logger.error(f"Manual entry not recorded: {e}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Access store is temporarily unavailable, please retry")
            )

        return Return.ok(response)
