from __future__ import annotations

import logging
from threading import RLock
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Signal(Generic[T]):
    """
    Thread-safe observer list for post-commit notifications.

    Subscribers run in the emitting thread, after the transaction that produced
    the payload has committed. A failing subscriber is logged and the remaining
    subscribers still run; it can never undo the committed state.
    """

    def __init__(self, name: str = "signal") -> None:
        self._name = name
        self._subscribers: list[Callable[[T], None]] = []
        self._lock: RLock = RLock()

    def connect(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def disconnect(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def emit(self, payload: T) -> int:
        """Deliver payload to every subscriber; returns the number of failures."""
        with self._lock:
            subscribers = list(self._subscribers)
        failures = 0
        stale_callbacks: list[Callable[[T], None]] = []
        for callback in subscribers:
            try:
                callback(payload)
            except ReferenceError:
                # weakref.proxy subscriber whose target is gone
                stale_callbacks.append(callback)
            except Exception:
                failures += 1
                logger.exception("Subscriber of '%s' failed", self._name)
        if stale_callbacks:
            with self._lock:
                for callback in stale_callbacks:
                    if callback in self._subscribers:
                        self._subscribers.remove(callback)
        return failures
