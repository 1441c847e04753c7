from core.domain.allocation import (
    MAX_DAILY_PERCENT,
    Allocation,
    ConflictDay,
    DailyCapacityEntry,
    Suggestion,
    UtilizationSummary,
)
from core.domain.dates import as_date, date_range, day_count
from core.domain.identifiers import generate_id, utc_now
from core.domain.results import AllocationResult, Conflict, Err, Ok

__all__ = [
    "generate_id",
    "utc_now",
    "as_date",
    "date_range",
    "day_count",
    "MAX_DAILY_PERCENT",
    "Allocation",
    "DailyCapacityEntry",
    "ConflictDay",
    "Suggestion",
    "UtilizationSummary",
    "Ok",
    "Conflict",
    "Err",
    "AllocationResult",
]
