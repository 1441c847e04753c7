from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.domain.allocation import (
    MAX_DAILY_PERCENT,
    Allocation,
    ConflictDay,
    DailyCapacityEntry,
    UtilizationSummary,
)
from core.domain.dates import date_range
from core.domain.results import AllocationResult, Conflict, Err, Ok
from core.events.domain_events import AllocationEvents, LedgerChange
from core.exceptions import (
    AllocationCancelledError,
    NotFoundError,
    OverallocationError,
    StorageError,
    ValidationError,
)
from core.interfaces import AllocationRepository, CapacityLedger
from core.services.capacity.concurrency import Deadline, UserLockRegistry
from core.services.capacity.conflicts import ConflictDetector
from core.services.capacity.suggestions import DEFAULT_SUGGESTION_LIMIT, SuggestionRanker
from core.services.capacity.validation import CapacityValidationMixin

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0

DeleteResult = Union[Ok[Allocation], Err]


class AllocationService(CapacityValidationMixin):
    """
    Single write entry point for allocations.

    A request moves through Validating -> CheckingConflicts -> Conflicted or
    Writing -> Committed or RolledBack. Writing runs under the per-user lock and
    inside one session: zero-valued ledger rows are reserved for the range,
    the conflict check is repeated there with row locks, then the allocation row and the ledger increments are flushed and committed
    together, or rolled back together.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        ledger: CapacityLedger,
        allocation_repo: AllocationRepository,
        *,
        detector: ConflictDetector | None = None,
        ranker: SuggestionRanker | None = None,
        lock_registry: UserLockRegistry | None = None,
        events: AllocationEvents | None = None,
        lock_timeout: float | None = DEFAULT_LOCK_TIMEOUT_SECONDS,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
    ):
        self._session_factory = session_factory
        self._ledger = ledger
        self._allocation_repo = allocation_repo
        self._detector = detector or ConflictDetector(ledger)
        self._ranker = ranker or SuggestionRanker(ledger, default_limit=suggestion_limit)
        self._locks = lock_registry or UserLockRegistry()
        self._events = events or AllocationEvents()
        self._lock_timeout = lock_timeout
        self._suggestion_limit = suggestion_limit

    @property
    def events(self) -> AllocationEvents:
        return self._events

    # ------------------------------------------------------------------ writes

    def create_allocation(
        self,
        organization_id: str,
        user_id: str,
        project_id: str,
        start_date: date,
        end_date: date,
        allocation_percentage: int,
        *,
        deadline: Deadline | None = None,
    ) -> AllocationResult:
        try:
            self._validate_identifier(organization_id, "organization_id")
            self._validate_identifier(user_id, "user_id")
            self._validate_identifier(project_id, "project_id")
            start, end = self._validate_range(start_date, end_date)
            pct = self._validate_percentage(allocation_percentage)
        except ValidationError as exc:
            logger.info("Rejected allocation request for user %s: %s", user_id, exc.message)
            return Err(exc)

        try:
            conflicts = self._detector.check_conflicts(organization_id, user_id, start, end, pct)
        except StorageError as exc:
            logger.error("Conflict check failed for user %s: %s", user_id, exc)
            return Err(exc)
        if conflicts:
            return self._conflicted(organization_id, user_id, start, end, pct, conflicts)

        try:
            with self._locks.hold(
                organization_id, user_id, timeout=self._lock_timeout, deadline=deadline
            ):
                result = self._write_allocation(
                    organization_id, user_id, project_id, start, end, pct, deadline
                )
        except AllocationCancelledError as exc:
            logger.warning("Allocation for user %s cancelled: %s", user_id, exc.message)
            return Err(exc)
        except StorageError as exc:
            logger.error("Rollback failed for user %s: %s", user_id, exc)
            return Err(exc)

        if isinstance(result, Ok):
            allocation = result.value
            logger.info(
                "Created allocation %s - user %s on project %s, %s..%s at %d%%",
                allocation.id,
                user_id,
                project_id,
                start,
                end,
                pct,
            )
            self._events.allocation_created.emit(allocation)
            self._events.ledger_changed.emit(
                LedgerChange(organization_id, user_id, start, end, pct)
            )
        return result

    def delete_allocation(
        self,
        allocation_id: str,
        *,
        deadline: Deadline | None = None,
    ) -> DeleteResult:
        try:
            existing = self._allocation_repo.get(allocation_id)
        except StorageError as exc:
            return Err(exc)
        if existing is None:
            return Err(NotFoundError("Allocation not found.", code="ALLOCATION_NOT_FOUND"))

        try:
            with self._locks.hold(
                existing.organization_id,
                existing.user_id,
                timeout=self._lock_timeout,
                deadline=deadline,
            ):
                result = self._remove_allocation(allocation_id, deadline)
        except AllocationCancelledError as exc:
            logger.warning("Deletion of allocation %s cancelled: %s", allocation_id, exc.message)
            return Err(exc)
        except StorageError as exc:
            logger.error("Rollback failed for allocation %s: %s", allocation_id, exc)
            return Err(exc)

        if isinstance(result, Ok):
            allocation = result.value
            logger.info(
                "Deleted allocation %s - released %d%% of user %s for %s..%s",
                allocation.id,
                allocation.allocation_percentage,
                allocation.user_id,
                allocation.start_date,
                allocation.end_date,
            )
            self._events.allocation_deleted.emit(allocation)
            self._events.ledger_changed.emit(
                LedgerChange(
                    allocation.organization_id,
                    allocation.user_id,
                    allocation.start_date,
                    allocation.end_date,
                    -allocation.allocation_percentage,
                )
            )
        return result

    # ------------------------------------------------------------------- reads

    def check_conflicts(
        self,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
        proposed_percentage: int,
    ) -> List[ConflictDay]:
        return self._detector.check_conflicts(
            organization_id, user_id, start_date, end_date, proposed_percentage
        )

    def get_ledger_range(
        self,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> List[DailyCapacityEntry]:
        start, end = self._validate_range(start_date, end_date)
        return self._ledger.get_range(organization_id, user_id, start, end)

    def get_allocation(self, allocation_id: str) -> Allocation:
        allocation = self._allocation_repo.get(allocation_id)
        if allocation is None:
            raise NotFoundError("Allocation not found.", code="ALLOCATION_NOT_FOUND")
        return allocation

    def list_allocations_for_user(self, organization_id: str, user_id: str) -> List[Allocation]:
        return self._allocation_repo.list_by_user(organization_id, user_id)

    def list_allocations_for_project(self, organization_id: str, project_id: str) -> List[Allocation]:
        return self._allocation_repo.list_by_project(organization_id, project_id)

    def summarize_utilization(
        self,
        organization_id: str,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> UtilizationSummary:
        start, end = self._validate_range(start_date, end_date)
        by_day = {
            e.capacity_date: e.allocated_percentage
            for e in self._ledger.get_range(organization_id, user_id, start, end)
        }
        values = [(day, by_day.get(day, 0)) for day in date_range(start, end)]
        total = sum(v for _, v in values)
        return UtilizationSummary(
            organization_id=organization_id,
            user_id=user_id,
            start_date=start,
            end_date=end,
            days=len(values),
            average_allocated_percentage=total / len(values),
            peak_allocated_percentage=max(v for _, v in values),
            overallocated_days=tuple(day for day, v in values if v > MAX_DAILY_PERCENT),
        )

    # ----------------------------------------------------------------- helpers

    def _conflicted(
        self,
        organization_id: str,
        user_id: str,
        start: date,
        end: date,
        pct: int,
        conflicts: List[ConflictDay],
    ) -> Conflict:
        try:
            suggestions = self._ranker.suggest(
                organization_id, start, end, pct, limit=self._suggestion_limit
            )
        except StorageError as exc:
            logger.warning("Could not rank alternatives for user %s: %s", user_id, exc)
            suggestions = []
        logger.info(
            "Allocation for user %s conflicts on %d day(s); %d alternative(s) suggested",
            user_id,
            len(conflicts),
            len(suggestions),
        )
        return Conflict(OverallocationError(conflicts, suggestions))

    def _write_allocation(
        self,
        organization_id: str,
        user_id: str,
        project_id: str,
        start: date,
        end: date,
        pct: int,
        deadline: Deadline | None,
    ) -> AllocationResult:
        session = self._session_factory()
        try:
            self._check_deadline(deadline, "conflict re-check")
            # rows must exist before the locking read can lock them
            self._ledger.ensure_range(session, organization_id, user_id, start, end)
            conflicts = self._detector.check_conflicts(
                organization_id, user_id, start, end, pct, tx=session, for_update=True
            )
            if conflicts:
                self._rollback(session)
                return self._conflicted(organization_id, user_id, start, end, pct, conflicts)

            allocation = Allocation.create(organization_id, user_id, project_id, start, end, pct)
            self._allocation_repo.add(session, allocation)
            self._check_deadline(deadline, "ledger update")
            self._ledger.increment_range(session, organization_id, user_id, start, end, pct)
            self._check_deadline(deadline, "commit")
            session.commit()
            return Ok(allocation)
        except AllocationCancelledError:
            self._rollback(session)
            raise
        except StorageError as exc:
            self._rollback(session)
            logger.error("Error creating allocation for user %s: %s", user_id, exc)
            return Err(exc)
        except SQLAlchemyError as exc:
            self._rollback(session)
            logger.error("Error creating allocation for user %s: %s", user_id, exc)
            return Err(self._storage_error("Could not persist allocation.", exc))
        finally:
            session.close()

    def _remove_allocation(self, allocation_id: str, deadline: Deadline | None) -> DeleteResult:
        session = self._session_factory()
        try:
            allocation = self._allocation_repo.get(allocation_id, tx=session)
            if allocation is None:
                self._rollback(session)
                return Err(NotFoundError("Allocation not found.", code="ALLOCATION_NOT_FOUND"))
            self._check_deadline(deadline, "allocation removal")
            self._allocation_repo.delete(session, allocation.id)
            self._ledger.increment_range(
                session,
                allocation.organization_id,
                allocation.user_id,
                allocation.start_date,
                allocation.end_date,
                -allocation.allocation_percentage,
            )
            self._check_deadline(deadline, "commit")
            session.commit()
            return Ok(allocation)
        except AllocationCancelledError:
            self._rollback(session)
            raise
        except StorageError as exc:
            self._rollback(session)
            logger.error("Error deleting allocation %s: %s", allocation_id, exc)
            return Err(exc)
        except SQLAlchemyError as exc:
            self._rollback(session)
            logger.error("Error deleting allocation %s: %s", allocation_id, exc)
            return Err(self._storage_error("Could not delete allocation.", exc))
        finally:
            session.close()

    @staticmethod
    def _check_deadline(deadline: Deadline | None, stage: str) -> None:
        if deadline is not None:
            deadline.check(stage)

    @staticmethod
    def _storage_error(message: str, exc: BaseException) -> StorageError:
        error = StorageError(f"{message} {exc}")
        error.__cause__ = exc
        return error

    def _rollback(self, session: Session) -> None:
        try:
            session.rollback()
        except SQLAlchemyError as exc:
            raise self._storage_error("Rollback failed.", exc) from exc


__all__ = ["AllocationService", "DEFAULT_LOCK_TIMEOUT_SECONDS"]
