from __future__ import annotations

from datetime import date
from typing import List

from core.domain.allocation import Suggestion
from core.interfaces import CapacityLedger

DEFAULT_SUGGESTION_LIMIT = 3


class SuggestionRanker:
    """Advisory only: proposes other users with room in the same window."""

    def __init__(self, ledger: CapacityLedger, default_limit: int = DEFAULT_SUGGESTION_LIMIT):
        self._ledger = ledger
        self._default_limit = default_limit

    def suggest(
        self,
        organization_id: str,
        start_date: date,
        end_date: date,
        required_percentage: int,
        limit: int | None = None,
    ) -> List[Suggestion]:
        limit = self._default_limit if limit is None else limit
        if limit <= 0:
            return []
        candidates = self._ledger.get_users_with_spare_capacity(
            organization_id, start_date, end_date, required_percentage
        )
        ranked = sorted(candidates, key=lambda s: (s.average_allocated_percentage, s.user_id))
        return ranked[:limit]


__all__ = ["DEFAULT_SUGGESTION_LIMIT", "SuggestionRanker"]
