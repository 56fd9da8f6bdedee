"""
Gate Access Use Cases

Redemption, manual entries and the access log.
"""

from .authorize_access_use_case import AuthorizeAccessUseCase
from .dtos import (
    AccessLogEntryResponse,
    AccessLogPage,
    AuthorizationResult,
    ManualEntryCommand,
)
from .list_access_logs_use_case import ListAccessLogsUseCase
from .record_manual_entry_use_case import RecordManualEntryUseCase

__all__ = [
    "AuthorizeAccessUseCase",
    "RecordManualEntryUseCase",
    "ListAccessLogsUseCase",
    "AuthorizationResult",
    "AccessLogEntryResponse",
    "AccessLogPage",
    "ManualEntryCommand",
]
