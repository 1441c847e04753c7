from __future__ import annotations

from datetime import date

from core.domain.allocation import MAX_DAILY_PERCENT
from core.domain.dates import as_date
from core.exceptions import InvalidPercentageError, InvalidRangeError, ValidationError


class CapacityValidationMixin:
    def _validate_range(self, start_date: date, end_date: date) -> tuple[date, date]:
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise InvalidRangeError("Start and end dates are required.")
        start = as_date(start_date)
        end = as_date(end_date)
        if start > end:
            raise InvalidRangeError(
                f"Start date ({start.isoformat()}) can not be after end date ({end.isoformat()})."
            )
        return start, end

    def _validate_percentage(self, percentage: int) -> int:
        # bool is an int subclass; True is not a percentage
        if isinstance(percentage, bool) or not isinstance(percentage, int):
            raise InvalidPercentageError()
        if percentage < 1 or percentage > MAX_DAILY_PERCENT:
            raise InvalidPercentageError(
                f"Allocation percentage must be between 1 and {MAX_DAILY_PERCENT} (got {percentage})."
            )
        return percentage

    def _validate_identifier(self, value: str, label: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{label} cannot be empty.", code="INVALID_IDENTIFIER")
        return value


__all__ = ["CapacityValidationMixin"]
