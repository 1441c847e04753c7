# infra/db/models.py
from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from infra.db.base import Base


class AllocationORM(Base):
    __tablename__ = "allocations"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_allocations_date_order"),
        CheckConstraint(
            "allocation_percentage >= 1 AND allocation_percentage <= 100",
            name="ck_allocations_percentage",
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    organization_id: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    allocation_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

Index("idx_allocations_org_user", AllocationORM.organization_id, AllocationORM.user_id)
Index("idx_allocations_project", AllocationORM.project_id)


class DailyCapacityORM(Base):
    __tablename__ = "user_daily_capacity"
    __table_args__ = (
        CheckConstraint("allocated_percentage >= 0", name="ck_daily_capacity_non_negative"),
    )

    organization_id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    capacity_date: Mapped[date] = mapped_column(Date, primary_key=True)
    allocated_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

Index("idx_daily_capacity_org_date", DailyCapacityORM.organization_id, DailyCapacityORM.capacity_date)


__all__ = ["AllocationORM", "DailyCapacityORM"]
