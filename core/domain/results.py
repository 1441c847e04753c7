"""
Tagged outcomes of a write request.

``Ok`` carries the persisted value, ``Conflict`` carries an
``OverallocationError`` (a normal business outcome, not a failure of the
system) and ``Err`` carries any other ``DomainError``. ``unwrap()`` turns the
failure variants back into exceptions for callers that prefer raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from core.domain.allocation import Allocation, ConflictDay, Suggestion
from core.exceptions import DomainError, OverallocationError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Conflict:
    error: OverallocationError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def conflicts(self) -> tuple[ConflictDay, ...]:
        return self.error.conflicts

    @property
    def suggestions(self) -> tuple[Suggestion, ...]:
        return self.error.suggestions

    def unwrap(self):
        raise self.error


@dataclass(frozen=True)
class Err:
    error: DomainError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def code(self) -> str:
        return self.error.code

    def unwrap(self):
        raise self.error


AllocationResult = Union[Ok[Allocation], Conflict, Err]


__all__ = ["Ok", "Conflict", "Err", "AllocationResult"]
