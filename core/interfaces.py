# core/interfaces.py
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, List, Optional

from core.domain.allocation import Allocation, DailyCapacityEntry, Suggestion

# A SQLAlchemy Session opened by the caller; repositories never commit it.
Transaction = Any


class CapacityLedger(ABC):
    """Per-organization, per-user, per-day allocated percentage."""

    @abstractmethod
    def get_range(
        self,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
        *,
        tx: Transaction | None = None,
        for_update: bool = False,
    ) -> List[DailyCapacityEntry]: ...

    @abstractmethod
    def increment_range(
        self,
        tx: Transaction,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
        delta: int,
    ) -> None: ...

    @abstractmethod
    def ensure_range(
        self,
        tx: Transaction,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> None:
        """Create missing rows in the range at 0; existing rows are left alone."""

    @abstractmethod
    def get_users_with_spare_capacity(
        self,
        organization_id: str,
        start_date: date,
        end_date: date,
        required_percentage: int,
    ) -> List[Suggestion]: ...


class AllocationRepository(ABC):
    @abstractmethod
    def add(self, tx: Transaction, allocation: Allocation) -> None: ...

    @abstractmethod
    def delete(self, tx: Transaction, allocation_id: str) -> None: ...

    @abstractmethod
    def get(self, allocation_id: str, *, tx: Transaction | None = None) -> Optional[Allocation]: ...

    @abstractmethod
    def list_by_user(self, organization_id: str, user_id: str) -> List[Allocation]: ...

    @abstractmethod
    def list_by_project(self, organization_id: str, project_id: str) -> List[Allocation]: ...


__all__ = ["Transaction", "CapacityLedger", "AllocationRepository"]
