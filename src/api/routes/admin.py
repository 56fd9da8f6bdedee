"""
Admin API Routes - Maintenance Endpoints

Called by schedulers, not by members.
Authentication is via Admin API Key, not member JWTs.
"""

from fastapi import APIRouter, Depends, Query, status

from src.api.error import raise_for_store_error
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.change_notifier import IChangeNotifier
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.invitations import (
    ExpireInvitationsResponse,
    ExpireStaleInvitationsUseCase,
)
from src.depends import get_change_notifier, get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/invitations/expire",
    status_code=status.HTTP_200_OK,
    response_model=ExpireInvitationsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def expire_stale_invitations(
    limit: int = Query(100, ge=1, le=1000, description="Maximum invitations per sweep"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    notifier: IChangeNotifier = Depends(get_change_notifier),
):
    """
    Expire Stale Invitations

    Marks active invitations past valid_until as expired.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = ExpireStaleInvitationsUseCase(uow, notifier)
    result = await use_case.execute(limit=limit)

    if result.is_err():
        raise_for_store_error(result.error)

    return result.value
