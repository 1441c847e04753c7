"""Notifications raised by the allocation engine once a transaction commits."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from core.domain.allocation import Allocation
from core.events.signal import Signal


@dataclass(frozen=True)
class LedgerChange:
    organization_id: str
    user_id: str
    start_date: date
    end_date: date
    delta: int


class AllocationEvents:
    """One instance per service graph; injected, never module-global."""

    def __init__(self) -> None:
        self.allocation_created: Signal[Allocation] = Signal("allocation_created")
        self.allocation_deleted: Signal[Allocation] = Signal("allocation_deleted")
        self.ledger_changed: Signal[LedgerChange] = Signal("ledger_changed")


__all__ = ["AllocationEvents", "LedgerChange"]
