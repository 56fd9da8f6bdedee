from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from libs.result import Error
from src.api.error import ClientError, raise_for_store_error
from src.app.services.change_notifier import IChangeNotifier, InvitationChangeEvent
from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.invitations import (
    CancelInvitationUseCase,
    CancellationResult,
    CreateInvitationCommand,
    CreateInvitationUseCase,
    GetInvitationUseCase,
    InvitationDetail,
    InvitationListResponse,
    InvitationSnapshot,
    ListInvitationsUseCase,
)
from src.depends import (
    get_change_notifier,
    get_current_actor,
    get_permission_evaluator,
    get_unit_of_work,
)
from src.domain.entities import Actor, Capability, InvitationStatus
from config import ApplicationConfig

router = APIRouter(prefix="/invitations", tags=["Invitations"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=InvitationSnapshot,
)
async def create_invitation(
    request: CreateInvitationCommand,
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
    notifier: IChangeNotifier = Depends(get_change_notifier),
):
    """
    Create Invitation

    Issues a visitor invitation with a short code and a QR payload.

    Raises:
        - 400 Bad Request: INVALID_ACCESS_POLICY, UNIT_REQUIRED
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_PERMISSION
        - 503 Service Unavailable: STORE_UNAVAILABLE, SHORT_CODE_EXHAUSTED
    """
    use_case = CreateInvitationUseCase(
        uow,
        permissions,
        notifier,
        qr_prefix=ApplicationConfig.QR_CODE_PREFIX,
        short_code_length=ApplicationConfig.SHORT_CODE_LENGTH,
    )
    result = await use_case.execute(actor, request)

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_ACCESS_POLICY", "UNIT_REQUIRED"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "INSUFFICIENT_PERMISSION":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        elif error.code == "SHORT_CODE_EXHAUSTED":
            error = Error("STORE_UNAVAILABLE", error.message)
        raise_for_store_error(error)

    return result.value


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=InvitationListResponse,
)
async def list_invitations(
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
    unit_id: Optional[UUID] = Query(None, description="Restrict to one unit"),
    status_filter: Optional[List[InvitationStatus]] = Query(
        None, alias="status", description="Stored statuses to include"
    ),
):
    """
    List Invitations

    Scope follows the caller's view capabilities (organization, unit, own).

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_PERMISSION
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = ListInvitationsUseCase(uow, permissions)
    result = await use_case.execute(actor, unit_id=unit_id, statuses=status_filter)

    if result.is_err():
        error = result.error
        if error.code == "INSUFFICIENT_PERMISSION":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise_for_store_error(error)

    return result.value


@router.get("/events")
async def stream_invitation_events(
    actor: Actor = Depends(get_current_actor),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
    notifier: IChangeNotifier = Depends(get_change_notifier),
):
    """
    Invitation Change Stream (Server-Sent Events)

    Pushes status changes so attendant devices and resident screens reflect
    redemptions immediately. Attendants and admins receive the whole
    organization; residents receive their own unit.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: INSUFFICIENT_PERMISSION
    """
    sees_all = permissions.can_any(
        actor.role, (Capability.invitations_view_all, Capability.access_scan)
    )
    sees_unit = actor.unit_id is not None and permissions.can(
        actor.role, Capability.invitations_view_unit
    )
    if not (sees_all or sees_unit):
        raise ClientError(
            Error("INSUFFICIENT_PERMISSION", "You do not have permission to follow invitations"),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    def visible(event: InvitationChangeEvent) -> bool:
        return sees_all or event.unit_id == actor.unit_id

    async def event_source():
        async for event in notifier.stream(actor.organization_id):
            if visible(event):
                yield f"event: invitation\ndata: {event.model_dump_json()}\n\n"

    return StreamingResponse(event_source(), media_type="text/event-stream")


@router.get(
    "/{invitation_id}",
    status_code=status.HTTP_200_OK,
    response_model=InvitationDetail,
)
async def get_invitation(
    invitation_id: UUID,
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
):
    """
    Get Invitation

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 404 Not Found: INVITATION_NOT_FOUND (also when not visible to caller)
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = GetInvitationUseCase(uow, permissions)
    result = await use_case.execute(invitation_id, actor)

    if result.is_err():
        error = result.error
        if error.code == "INVITATION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise_for_store_error(error)

    return result.value


@router.post(
    "/{invitation_id}/cancel",
    status_code=status.HTTP_200_OK,
    response_model=CancellationResult,
)
async def cancel_invitation(
    invitation_id: UUID,
    actor: Actor = Depends(get_current_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
    permissions: PermissionEvaluator = Depends(get_permission_evaluator),
    notifier: IChangeNotifier = Depends(get_change_notifier),
):
    """
    Cancel Invitation

    Moves an active invitation to cancelled. Rejections (not found, not
    allowed, already used/cancelled/expired) are a 200 response with
    success=false and a reason.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = CancelInvitationUseCase(uow, permissions, notifier)
    result = await use_case.execute(invitation_id, actor)

    if result.is_err():
        raise_for_store_error(result.error)

    return result.value
