from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.domain.allocation import MAX_DAILY_PERCENT, DailyCapacityEntry, Suggestion
from core.domain.dates import date_range, day_count
from core.interfaces import CapacityLedger
from infra.db.capacity.mapper import daily_capacity_from_orm, daily_capacity_to_orm
from infra.db.models import DailyCapacityORM
from infra.db.session_scope import read_scope, require_transaction, storage_error

logger = logging.getLogger(__name__)

_CONFLICT_IGNORING_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SqlAlchemyCapacityLedger(CapacityLedger):
    """
    Ledger rows live in ``user_daily_capacity``. Reads without ``tx`` use a
    short session of their own; writes only ever run inside the caller's
    session and never commit it.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _user_window(self, organization_id: str, user_id: str, start_date: date, end_date: date):
        return (
            DailyCapacityORM.organization_id == organization_id,
            DailyCapacityORM.user_id == user_id,
            DailyCapacityORM.capacity_date.between(start_date, end_date),
        )

    def get_range(
        self,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
        *,
        tx: Session | None = None,
        for_update: bool = False,
    ) -> List[DailyCapacityEntry]:
        stmt = (
            select(DailyCapacityORM)
            .where(*self._user_window(organization_id, user_id, start_date, end_date))
            .order_by(DailyCapacityORM.capacity_date)
        )
        if for_update:
            stmt = stmt.with_for_update()
        try:
            with read_scope(self._session_factory, tx) as session:
                rows = session.execute(stmt).scalars().all()
                return [daily_capacity_from_orm(row) for row in rows]
        except SQLAlchemyError as exc:
            raise storage_error("Ledger range read", exc) from exc

    def increment_range(
        self,
        tx: Session,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
        delta: int,
    ) -> None:
        session = require_transaction(tx, "Ledger increment")
        days = date_range(start_date, end_date)
        if not days:
            return
        window = self._user_window(organization_id, user_id, start_date, end_date)
        try:
            existing = set(
                session.execute(
                    select(DailyCapacityORM.capacity_date).where(*window).with_for_update()
                ).scalars()
            )
            if existing:
                session.execute(
                    update(DailyCapacityORM)
                    .where(*window)
                    .values(allocated_percentage=DailyCapacityORM.allocated_percentage + delta)
                    .execution_options(synchronize_session=False)
                )
            for day in days:
                if day in existing:
                    continue
                session.add(
                    daily_capacity_to_orm(
                        DailyCapacityEntry(
                            organization_id=organization_id,
                            user_id=user_id,
                            capacity_date=day,
                            allocated_percentage=delta,
                        )
                    )
                )
            session.flush()
        except SQLAlchemyError as exc:
            raise storage_error("Ledger increment", exc) from exc
        logger.debug(
            "Ledger %+d%% for user %s over %d day(s) (%d new)",
            delta,
            user_id,
            len(days),
            len(days) - len(existing),
        )

    def ensure_range(
        self,
        tx: Session,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> None:
        session = require_transaction(tx, "Ledger row reservation")
        days = date_range(start_date, end_date)
        if not days:
            return
        rows = [
            {
                "organization_id": organization_id,
                "user_id": user_id,
                "capacity_date": day,
                "allocated_percentage": 0,
            }
            for day in days
        ]
        try:
            dialect_insert = _CONFLICT_IGNORING_INSERTS.get(session.get_bind().dialect.name)
            if dialect_insert is not None:
                # a concurrent writer's uncommitted row makes this wait for its commit
                session.execute(
                    dialect_insert(DailyCapacityORM).values(rows).on_conflict_do_nothing()
                )
            else:
                existing = set(
                    session.execute(
                        select(DailyCapacityORM.capacity_date).where(
                            *self._user_window(organization_id, user_id, start_date, end_date)
                        )
                    ).scalars()
                )
                session.add_all(
                    daily_capacity_to_orm(DailyCapacityEntry(**row))
                    for row in rows
                    if row["capacity_date"] not in existing
                )
            session.flush()
        except SQLAlchemyError as exc:
            raise storage_error("Ledger row reservation", exc) from exc

    def get_users_with_spare_capacity(
        self,
        organization_id: str,
        start_date: date,
        end_date: date,
        required_percentage: int,
    ) -> List[Suggestion]:
        days = day_count(start_date, end_date)
        if days == 0:
            return []
        candidates_stmt = (
            select(DailyCapacityORM.user_id)
            .where(DailyCapacityORM.organization_id == organization_id)
            .distinct()
        )
        totals_stmt = (
            select(DailyCapacityORM.user_id, func.sum(DailyCapacityORM.allocated_percentage))
            .where(
                DailyCapacityORM.organization_id == organization_id,
                DailyCapacityORM.capacity_date.between(start_date, end_date),
            )
            .group_by(DailyCapacityORM.user_id)
        )
        max_average = MAX_DAILY_PERCENT - required_percentage
        try:
            with read_scope(self._session_factory) as session:
                candidates = session.execute(candidates_stmt).scalars().all()
                totals = dict(session.execute(totals_stmt).all())
        except SQLAlchemyError as exc:
            raise storage_error("Spare capacity query", exc) from exc

        # Absent days count as zero, so average over the whole window rather
        # than over the rows that happen to exist.
        suggestions = [
            Suggestion(
                user_id=user_id,
                average_allocated_percentage=float(totals.get(user_id) or 0) / days,
            )
            for user_id in candidates
        ]
        suggestions = [s for s in suggestions if s.average_allocated_percentage <= max_average]
        suggestions.sort(key=lambda s: (s.average_allocated_percentage, s.user_id))
        return suggestions


__all__ = ["SqlAlchemyCapacityLedger"]
