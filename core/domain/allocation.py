from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from core.domain.identifiers import generate_id, utc_now

MAX_DAILY_PERCENT = 100


@dataclass(frozen=True)
class Allocation:
    id: str
    organization_id: str
    user_id: str
    project_id: str
    start_date: date
    end_date: date
    allocation_percentage: int
    created_at: datetime = field(default_factory=utc_now)

    @staticmethod
    def create(
        organization_id: str,
        user_id: str,
        project_id: str,
        start_date: date,
        end_date: date,
        allocation_percentage: int,
    ) -> "Allocation":
        return Allocation(
            id=generate_id(),
            organization_id=organization_id,
            user_id=user_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
            allocation_percentage=allocation_percentage,
        )


@dataclass(frozen=True)
class DailyCapacityEntry:
    organization_id: str
    user_id: str
    capacity_date: date
    allocated_percentage: int = 0


@dataclass(frozen=True)
class ConflictDay:
    date: date
    current_allocation: int
    would_be_allocation: int


@dataclass(frozen=True)
class Suggestion:
    user_id: str
    average_allocated_percentage: float


@dataclass(frozen=True)
class UtilizationSummary:
    organization_id: str
    user_id: str
    start_date: date
    end_date: date
    days: int
    average_allocated_percentage: float
    peak_allocated_percentage: int
    overallocated_days: tuple[date, ...] = ()

    @property
    def is_overallocated(self) -> bool:
        return bool(self.overallocated_days)


__all__ = [
    "MAX_DAILY_PERCENT",
    "Allocation",
    "DailyCapacityEntry",
    "ConflictDay",
    "Suggestion",
    "UtilizationSummary",
]
