"""Custom exception hierarchy for recordlens."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence


class RecordLensError(Exception):
    """Base class for all custom errors raised by recordlens."""


# --- 3-layer hierarchy ---

class DomainError(RecordLensError):
    """Base class for domain-level errors."""


class InfrastructureError(RecordLensError):
    """Base class for infrastructure-level errors."""


class ApplicationError(RecordLensError):
    """Base class for application-level errors."""


# --- Domain errors ---

class EmptyInputRejected(DomainError):
    """Raised when user input normalises to empty text.

    Local validation only; the request never reaches the network.
    """

    def __init__(self, field: str = "value") -> None:
        super().__init__(f"{field} must not be empty")
        self.field = field


# --- Infrastructure errors ---

class NetworkFailure(InfrastructureError):
    """Raised when a fetch or mutation could not complete."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


# --- Application errors ---

class PartialTagFailure(ApplicationError):
    """Raised when some tag additions of a commit failed.

    ``tags`` holds the authoritative tag list read back after the batch
    settled, so callers can still show the true server state.
    """

    def __init__(
        self,
        record_id: str,
        failed: Iterable[str],
        tags: Sequence[str] = (),
    ) -> None:
        self.record_id = record_id
        self.failed = tuple(sorted(failed))
        self.tags = tuple(tags)
        super().__init__(
            f"Could not add {len(self.failed)} tag(s) to {record_id}: "
            + ", ".join(self.failed)
        )


class ReconcileReadFailure(ApplicationError):
    """Raised when the post-commit re-read of a record's tags failed.

    Local tag state is of unknown trust afterwards and must be shown as stale.
    """

    def __init__(
        self,
        record_id: str,
        cause: Optional[BaseException] = None,
        failed_adds: Iterable[str] = (),
    ) -> None:
        self.record_id = record_id
        self.cause = cause
        self.failed_adds = tuple(sorted(failed_adds))
        super().__init__(f"Could not re-read tags for {record_id}: {cause}")


class CommitInProgressError(ApplicationError):
    """Raised when a tag commit is requested while one is outstanding for the record."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"A tag commit for {record_id} is already in progress")
        self.record_id = record_id


# --- Settings errors ---

class SettingsError(RecordLensError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
