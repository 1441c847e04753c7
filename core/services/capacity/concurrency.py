"""
Write-path serialization and caller cancellation.

Linearizable ledger state per user requires one of two preconditions: the
database takes row locks on the ledger rows read with ``for_update=True``
(PostgreSQL and friends), or every writer for a given user goes through the
same ``UserLockRegistry``. The allocation service always does both, and it
inserts zero-valued ledger rows for the requested range before the locking
read, so days nobody has booked yet are locked too. SQLite ignores
``FOR UPDATE``; there the zero-row insert takes the database write lock,
which serializes writers across connections of a single database file.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Event, Lock
from typing import Callable, Iterator

from core.exceptions import AllocationCancelledError

# Longest single blocking acquire while a deadline is being watched.
LOCK_POLL_SECONDS = 0.05


class Deadline:
    def __init__(
        self,
        expires_at: float | None = None,
        cancel_event: Event | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._expires_at = expires_at
        self._cancel_event = cancel_event
        self._clock = clock

    @classmethod
    def after(cls, seconds: float, cancel_event: Event | None = None) -> "Deadline":
        return cls(time.monotonic() + seconds, cancel_event)

    @classmethod
    def cancellable(cls, cancel_event: Event) -> "Deadline":
        return cls(None, cancel_event)

    @property
    def cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def check(self, stage: str) -> None:
        if self.cancelled:
            raise AllocationCancelledError(f"Request cancelled during {stage}.")
        if self.expired:
            raise AllocationCancelledError(
                f"Deadline exceeded during {stage}.", code="DEADLINE_EXCEEDED"
            )


@dataclass
class _LockEntry:
    lock: Lock = field(default_factory=Lock)
    holders: int = 0


class UserLockRegistry:
    """One lock per (organization_id, user_id); entries are dropped when idle."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: dict[tuple[str, str], _LockEntry] = {}

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(
        self,
        organization_id: str,
        user_id: str,
        *,
        timeout: float | None = None,
        deadline: Deadline | None = None,
    ) -> Iterator[None]:
        """
        Hold the user's lock for the duration of the block.

        ``timeout`` bounds the wait (None waits indefinitely). A ``deadline``
        is checked between short acquire attempts, so cancellation and expiry
        end the wait early with their own error codes.
        """
        key = (organization_id, user_id)
        with self._guard:
            entry = self._entries.setdefault(key, _LockEntry())
            entry.holders += 1

        acquired = False
        try:
            acquired = self._acquire(entry.lock, user_id, timeout, deadline)
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    @staticmethod
    def _acquire(
        lock: Lock,
        user_id: str,
        timeout: float | None,
        deadline: Deadline | None,
    ) -> bool:
        if deadline is None:
            if lock.acquire(timeout=-1 if timeout is None else max(timeout, 0.0)):
                return True
        else:
            give_up_at = None if timeout is None else time.monotonic() + max(timeout, 0.0)
            while True:
                deadline.check("lock wait")
                wait = LOCK_POLL_SECONDS
                remaining = deadline.remaining()
                if remaining is not None:
                    wait = min(wait, remaining)
                if give_up_at is not None:
                    wait = min(wait, give_up_at - time.monotonic())
                if lock.acquire(timeout=max(wait, 0.0)):
                    return True
                if give_up_at is not None and time.monotonic() >= give_up_at:
                    # the deadline wins when both ran out together
                    deadline.check("lock wait")
                    break
        raise AllocationCancelledError(
            f"Timed out waiting for the allocation lock of user {user_id}.",
            code="LOCK_TIMEOUT",
        )


__all__ = ["Deadline", "LOCK_POLL_SECONDS", "UserLockRegistry"]
