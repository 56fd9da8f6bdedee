"""
Invitation Use Cases

Issuing, reading, cancelling and expiring visitor invitations.
"""

from .cancel_invitation_use_case import CancelInvitationUseCase
from .create_invitation_use_case import CreateInvitationUseCase
from .dtos import (
    CancellationResult,
    CreateInvitationCommand,
    ExpireInvitationsResponse,
    InvitationDetail,
    InvitationListResponse,
    InvitationSnapshot,
)
from .expire_stale_invitations_use_case import ExpireStaleInvitationsUseCase
from .get_invitation_use_case import GetInvitationUseCase
from .list_invitations_use_case import ListInvitationsUseCase

__all__ = [
    "CreateInvitationUseCase",
    "CancelInvitationUseCase",
    "GetInvitationUseCase",
    "ListInvitationsUseCase",
    "ExpireStaleInvitationsUseCase",
    "CreateInvitationCommand",
    "CancellationResult",
    "ExpireInvitationsResponse",
    "InvitationDetail",
    "InvitationListResponse",
    "InvitationSnapshot",
]
