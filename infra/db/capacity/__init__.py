from infra.db.capacity.mapper import daily_capacity_from_orm, daily_capacity_to_orm
from infra.db.capacity.repository import SqlAlchemyCapacityLedger

__all__ = [
    "daily_capacity_from_orm",
    "daily_capacity_to_orm",
    "SqlAlchemyCapacityLedger",
]
