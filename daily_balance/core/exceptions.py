"""
Error taxonomy for the daily balance feature.

Every error leaves the entry buffer untouched (still dirty), so callers can
surface the failure and keep the form interactive.
"""


class BalanceError(Exception):
    """Base exception for daily balance failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreError(BalanceError):
    """Raised when the remote balance store rejects or fails a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class EntryNotFoundError(StoreError):
    """Raised when the remote store has no entry with the requested id."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404, retryable=False)


class ValidationGateError(BalanceError):
    """Raised when a day cannot be finalized (unbalanced or without income)."""


class MissingActorError(BalanceError):
    """Raised when a new entry would be created without an authenticated actor."""


class InvalidFieldError(BalanceError):
    """Raised when a field update carries a value the buffer cannot hold."""

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field
