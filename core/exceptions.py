# core/exceptions.py
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from core.domain.allocation import ConflictDay, Suggestion


class DomainError(Exception):
    """Base class for domain-level errors."""
    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when caller input is invalid, before any storage access."""


class InvalidRangeError(ValidationError):
    """Raised when start_date is after end_date."""
    def __init__(self, message: str = "Start date must not be after end date.", *, code: str | None = None):
        super().__init__(message, code=code or "INVALID_RANGE")


class InvalidPercentageError(ValidationError):
    """Raised when an allocation percentage is outside 1..100."""
    def __init__(
        self,
        message: str = "Allocation percentage must be an integer between 1 and 100.",
        *,
        code: str | None = None,
    ):
        super().__init__(message, code=code or "INVALID_PERCENTAGE")


class NotFoundError(DomainError):
    """Raised when an entity is not found."""


class BusinessRuleError(DomainError):
    """Raised when business rules are violated."""


class OverallocationError(BusinessRuleError):
    """
    A proposed allocation would push a user above 100% on at least one day.

    Carries every conflicting day plus ranked alternative users so callers can
    render both the problem and the remediation options.
    """
    def __init__(
        self,
        conflicts: Sequence["ConflictDay"],
        suggestions: Sequence["Suggestion"] = (),
        *,
        message: str | None = None,
    ):
        self.conflicts: tuple["ConflictDay", ...] = tuple(conflicts)
        self.suggestions: tuple["Suggestion", ...] = tuple(suggestions)
        if message is None:
            first = self.conflicts[0] if self.conflicts else None
            message = "Resource overallocation detected"
            if first is not None:
                message = (
                    f"Resource would be over-allocated on {len(self.conflicts)} day(s), "
                    f"first on {first.date.isoformat()} ({first.would_be_allocation}% > 100%)."
                )
        super().__init__(message, code="RESOURCE_OVERALLOCATED")


class StorageError(DomainError):
    """Raised on I/O or transaction failures; no partial state survives it."""
    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message, code=code or "STORAGE_ERROR")


class AllocationCancelledError(DomainError):
    """Raised when a caller deadline or cancellation fires before commit."""
    def __init__(self, message: str = "Allocation request was cancelled.", *, code: str | None = None):
        super().__init__(message, code=code or "ALLOCATION_CANCELLED")
