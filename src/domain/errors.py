"""
Infrastructure errors raised by adapters.

Expected business outcomes are never exceptions; only failures of the
backing store or transport travel this way.
"""


class StoreUnavailableError(Exception):
    """The datastore could not be reached or rejected the operation"""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"Store unavailable during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidCursorError(ValueError):
    """A pagination cursor that was not issued by this service"""

    def __init__(self, cursor: str):
        self.cursor = cursor
        super().__init__(f"Invalid pagination cursor: {cursor!r}")
