from __future__ import annotations

import logging
from datetime import date
from typing import List

from core.domain.allocation import MAX_DAILY_PERCENT, ConflictDay
from core.domain.dates import date_range
from core.interfaces import CapacityLedger, Transaction
from core.services.capacity.validation import CapacityValidationMixin

logger = logging.getLogger(__name__)


class ConflictDetector(CapacityValidationMixin):
    """Read-then-compare against the ledger; never mutates anything."""

    def __init__(self, ledger: CapacityLedger):
        self._ledger = ledger

    def check_conflicts(
        self,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
        proposed_percentage: int,
        *,
        tx: Transaction | None = None,
        for_update: bool = False,
    ) -> List[ConflictDay]:
        start, end = self._validate_range(start_date, end_date)
        proposed = self._validate_percentage(proposed_percentage)

        entries = self._ledger.get_range(
            organization_id, user_id, start, end, tx=tx, for_update=for_update
        )
        current_by_day = {e.capacity_date: e.allocated_percentage for e in entries}

        conflicts: list[ConflictDay] = []
        for day in date_range(start, end):
            current = current_by_day.get(day, 0)
            would_be = current + proposed
            if would_be > MAX_DAILY_PERCENT:
                conflicts.append(
                    ConflictDay(date=day, current_allocation=current, would_be_allocation=would_be)
                )

        if conflicts:
            logger.debug(
                "User %s would be over-allocated on %d day(s) between %s and %s",
                user_id,
                len(conflicts),
                start,
                end,
            )
        return conflicts


__all__ = ["ConflictDetector"]
