from __future__ import annotations

from core.domain.allocation import DailyCapacityEntry
from infra.db.models import DailyCapacityORM


def daily_capacity_from_orm(obj: DailyCapacityORM) -> DailyCapacityEntry:
    return DailyCapacityEntry(
        organization_id=obj.organization_id,
        user_id=obj.user_id,
        capacity_date=obj.capacity_date,
        allocated_percentage=int(obj.allocated_percentage or 0),
    )


def daily_capacity_to_orm(entry: DailyCapacityEntry) -> DailyCapacityORM:
    return DailyCapacityORM(
        organization_id=entry.organization_id,
        user_id=entry.user_id,
        capacity_date=entry.capacity_date,
        allocated_percentage=entry.allocated_percentage,
    )


__all__ = ["daily_capacity_from_orm", "daily_capacity_to_orm"]
