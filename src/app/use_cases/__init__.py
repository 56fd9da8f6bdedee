"""
Use Cases

Organized into domain folders:
- access/: Gate redemption, manual entries, access log
- invitations/: Invitation lifecycle
"""

from .access import (
    AuthorizeAccessUseCase,
    ListAccessLogsUseCase,
    RecordManualEntryUseCase,
)
from .invitations import (
    CancelInvitationUseCase,
    CreateInvitationUseCase,
    ExpireStaleInvitationsUseCase,
    GetInvitationUseCase,
    ListInvitationsUseCase,
)

__all__ = [
    # Access
    "AuthorizeAccessUseCase",
    "RecordManualEntryUseCase",
    "ListAccessLogsUseCase",
    # Invitations
    "CreateInvitationUseCase",
    "CancelInvitationUseCase",
    "GetInvitationUseCase",
    "ListInvitationsUseCase",
    "ExpireStaleInvitationsUseCase",
]
