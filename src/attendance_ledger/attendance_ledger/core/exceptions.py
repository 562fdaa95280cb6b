from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..attendance.conflicts import ConflictReport


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidSlotSelection(ValidationError):
    """Raised when a commit selects no lecture slot."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ScopeDenied(AuthorizationError):
    """Raised when a (branch, batch, subject) lies outside the faculty's resolved scope."""


class StoreUnavailable(DomainError):
    """Raised when the persistent store failed or timed out. Safe to retry."""

    retryable = True


class ConflictAcknowledgmentRequired(DomainError):
    """Another author already holds events the commit would overwrite.

    Not a failure: the caller re-invokes the commit with an explicit override.
    """

    def __init__(self, report: "ConflictReport"):
        super().__init__(
            f"Slot {report.slot} already marked by {report.author_name or report.author_id}"
        )
        self.report = report
