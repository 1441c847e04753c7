from __future__ import annotations

from core.domain.allocation import Allocation
from infra.db.models import AllocationORM


def allocation_to_orm(allocation: Allocation) -> AllocationORM:
    return AllocationORM(
        id=allocation.id,
        organization_id=allocation.organization_id,
        user_id=allocation.user_id,
        project_id=allocation.project_id,
        start_date=allocation.start_date,
        end_date=allocation.end_date,
        allocation_percentage=allocation.allocation_percentage,
        created_at=allocation.created_at,
    )


def allocation_from_orm(obj: AllocationORM) -> Allocation:
    return Allocation(
        id=obj.id,
        organization_id=obj.organization_id,
        user_id=obj.user_id,
        project_id=obj.project_id,
        start_date=obj.start_date,
        end_date=obj.end_date,
        allocation_percentage=int(obj.allocation_percentage),
        created_at=obj.created_at,
    )


__all__ = ["allocation_to_orm", "allocation_from_orm"]
