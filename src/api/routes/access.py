"""
Access API Routes

Gate redemption, manual entries and the access log.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, raise_for_store_error
from src.app.services.change_notifier import IChangeNotifier
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.access import (
    AccessLogEntryResponse,
    AccessLogPage,
    AuthorizationResult,
    AuthorizeAccessUseCase,
    ListAccessLogsUseCase,
    ManualEntryCommand,
    RecordManualEntryUseCase,
)
from src.depends import (
    get_change_notifier,
    get_current_actor,
    get_permission_evaluator,
    get_unit_of_work,
)
from src.domain.entities import AccessDirection, Actor
from config import ApplicationConfig

router = APIRouter(prefix="/access", tags=["Access"])


class AuthorizeRequest(BaseModel):
    """
    Authorize HTTP request payload

    `code` is a short code, a QR payload or an invitation id.
    """

    code: str = Field(..., min_length=1, max_length=255, description="Short code or QR payload")
    direction: AccessDirection = Field(AccessDirection.entry, description="entry or exit")


@router.post(
    "/authorize",
    status_code=status.HTTP_200_OK,
    response_model=AuthorizationResult,
)
async def authorize_access(
    request: AuthorizeRequest,
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
    notifier: IChangeNotifier = Depends(get_change_notifier),
):
    """
    Authorize Access

    Redeems an invitation at the gate. Every expected rejection (unknown
    code, missing capability, expired, used, exhausted, cancelled, not yet
    valid) is a 200 response with granted=false and a reason.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 503 Service Unavailable: STORE_UNAVAILABLE (retryable)
    """
    use_case = AuthorizeAccessUseCase(
        uow,
        permissions,
        notifier,
        qr_prefix=ApplicationConfig.QR_CODE_PREFIX,
    )
    result = await use_case.execute(request.code, actor, request.direction)

    if result.is_err():
        raise_for_store_error(result.error)

    return result.value


@router.post(
    "/manual-entry",
    status_code=status.HTTP_201_CREATED,
    response_model=AccessLogEntryResponse,
)
async def record_manual_entry(
    request: ManualEntryCommand,
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
):
    """
    Record Manual Entry

    Registers a visitor let in without an invitation.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_PERMISSION (needs access.manual)
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = RecordManualEntryUseCase(uow, permissions)
    result = await use_case.execute(actor, request)

    if result.is_err():
        error = result.error
        if error.code == "INSUFFICIENT_PERMISSION":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise_for_store_error(error)

    return result.value


@router.get(
    "/logs",
    status_code=status.HTTP_200_OK,
    response_model=AccessLogPage,
)
async def list_access_logs(
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of entries to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get Access Log

    Returns gate crossings of the caller's organization, newest first.

    Raises:
        - 400 Bad Request: INVALID_CURSOR
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_PERMISSION (needs access.logs.view)
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = ListAccessLogsUseCase(uow, permissions)
    result = await use_case.execute(actor, limit=limit, cursor=cursor)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_CURSOR":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        if error.code == "INSUFFICIENT_PERMISSION":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise_for_store_error(error)

    return result.value
