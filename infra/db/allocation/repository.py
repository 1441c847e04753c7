from __future__ import annotations

from typing import Callable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.domain.allocation import Allocation
from core.interfaces import AllocationRepository
from infra.db.allocation.mapper import allocation_from_orm, allocation_to_orm
from infra.db.models import AllocationORM
from infra.db.session_scope import read_scope, require_transaction, storage_error


class SqlAlchemyAllocationRepository(AllocationRepository):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def add(self, tx: Session, allocation: Allocation) -> None:
        session = require_transaction(tx, "Allocation insert")
        try:
            session.add(allocation_to_orm(allocation))
            session.flush()
        except SQLAlchemyError as exc:
            raise storage_error("Allocation insert", exc) from exc

    def delete(self, tx: Session, allocation_id: str) -> None:
        session = require_transaction(tx, "Allocation delete")
        try:
            session.execute(delete(AllocationORM).where(AllocationORM.id == allocation_id))
            session.flush()
        except SQLAlchemyError as exc:
            raise storage_error("Allocation delete", exc) from exc

    def get(self, allocation_id: str, *, tx: Session | None = None) -> Optional[Allocation]:
        try:
            with read_scope(self._session_factory, tx) as session:
                obj = session.get(AllocationORM, allocation_id)
                return allocation_from_orm(obj) if obj else None
        except SQLAlchemyError as exc:
            raise storage_error("Allocation read", exc) from exc

    def _list(self, *criteria) -> List[Allocation]:
        stmt = (
            select(AllocationORM)
            .where(*criteria)
            .order_by(AllocationORM.start_date, AllocationORM.created_at, AllocationORM.id)
        )
        try:
            with read_scope(self._session_factory) as session:
                rows = session.execute(stmt).scalars().all()
                return [allocation_from_orm(row) for row in rows]
        except SQLAlchemyError as exc:
            raise storage_error("Allocation listing", exc) from exc

    def list_by_user(self, organization_id: str, user_id: str) -> List[Allocation]:
        return self._list(
            AllocationORM.organization_id == organization_id,
            AllocationORM.user_id == user_id,
        )

    def list_by_project(self, organization_id: str, project_id: str) -> List[Allocation]:
        return self._list(
            AllocationORM.organization_id == organization_id,
            AllocationORM.project_id == project_id,
        )


__all__ = ["SqlAlchemyAllocationRepository"]
