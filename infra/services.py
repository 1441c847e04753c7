from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from core.domain.allocation import Allocation
from core.events.domain_events import AllocationEvents
from core.services.capacity import (
    AllocationService,
    ConflictDetector,
    SuggestionRanker,
    UserLockRegistry,
)
from infra.config import EngineSettings
from infra.db.allocation import SqlAlchemyAllocationRepository
from infra.db.base import Base, build_engine, build_session_factory
from infra.db.capacity import SqlAlchemyCapacityLedger
from infra.operational_support import OperationalSupport


@dataclass(frozen=True)
class ServiceGraph:
    engine: Engine
    session_factory: sessionmaker
    events: AllocationEvents
    ledger: SqlAlchemyCapacityLedger
    allocation_repo: SqlAlchemyAllocationRepository
    conflict_detector: ConflictDetector
    suggestion_ranker: SuggestionRanker
    allocation_service: AllocationService

    def as_dict(self) -> dict[str, Any]:
        return {
            "engine": self.engine,
            "session_factory": self.session_factory,
            "events": self.events,
            "ledger": self.ledger,
            "allocation_repo": self.allocation_repo,
            "conflict_detector": self.conflict_detector,
            "suggestion_ranker": self.suggestion_ranker,
            "allocation_service": self.allocation_service,
        }


def _allocation_event_data(allocation: Allocation) -> dict[str, Any]:
    data = asdict(allocation)
    data["created_at"] = allocation.created_at.isoformat()
    return data


def connect_operational_support(events: AllocationEvents, support: OperationalSupport) -> None:
    """Record committed allocation changes in the operational event stream."""

    def _on_created(allocation: Allocation) -> None:
        support.emit_event(
            event_type="allocation.created",
            message=f"Allocated {allocation.allocation_percentage}% of user {allocation.user_id}",
            data=_allocation_event_data(allocation),
        )

    def _on_deleted(allocation: Allocation) -> None:
        support.emit_event(
            event_type="allocation.deleted",
            message=f"Released {allocation.allocation_percentage}% of user {allocation.user_id}",
            data=_allocation_event_data(allocation),
        )

    events.allocation_created.connect(_on_created)
    events.allocation_deleted.connect(_on_deleted)


def build_service_graph(
    settings: EngineSettings | None = None,
    *,
    engine: Engine | None = None,
    support: OperationalSupport | None = None,
    create_schema: bool = False,
) -> ServiceGraph:
    settings = settings or EngineSettings.from_env()
    engine = engine or build_engine(settings.db_url, echo=settings.sql_echo)
    if create_schema:
        Base.metadata.create_all(bind=engine)
    session_factory = build_session_factory(engine)

    events = AllocationEvents()
    if support is not None:
        connect_operational_support(events, support)

    ledger = SqlAlchemyCapacityLedger(session_factory)
    allocation_repo = SqlAlchemyAllocationRepository(session_factory)
    conflict_detector = ConflictDetector(ledger)
    suggestion_ranker = SuggestionRanker(ledger, default_limit=settings.suggestion_limit)
    allocation_service = AllocationService(
        session_factory,
        ledger,
        allocation_repo,
        detector=conflict_detector,
        ranker=suggestion_ranker,
        lock_registry=UserLockRegistry(),
        events=events,
        lock_timeout=settings.lock_timeout_seconds,
        suggestion_limit=settings.suggestion_limit,
    )

    return ServiceGraph(
        engine=engine,
        session_factory=session_factory,
        events=events,
        ledger=ledger,
        allocation_repo=allocation_repo,
        conflict_detector=conflict_detector,
        suggestion_ranker=suggestion_ranker,
        allocation_service=allocation_service,
    )


def build_service_dict(settings: EngineSettings | None = None, **kwargs: Any) -> dict[str, Any]:
    return build_service_graph(settings, **kwargs).as_dict()


__all__ = [
    "ServiceGraph",
    "build_service_graph",
    "build_service_dict",
    "connect_operational_support",
]
