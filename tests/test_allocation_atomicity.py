from datetime import date
import time
from threading import Event, Timer

from sqlalchemy.exc import OperationalError

from core.domain.results import Err
from core.exceptions import AllocationCancelledError, StorageError
from core.services.capacity import AllocationService, Deadline, UserLockRegistry
from infra.db.capacity import SqlAlchemyCapacityLedger

ORG = "org-1"
START = date(2025, 4, 1)
END = date(2025, 4, 3)


class ExplodingLedger(SqlAlchemyCapacityLedger):
    """Applies the increment, then fails as if the connection dropped."""

    def increment_range(self, tx, organization_id, user_id, start_date, end_date, delta):
        super().increment_range(tx, organization_id, user_id, start_date, end_date, delta)
        raise StorageError("connection lost")


class CancellingLedger(SqlAlchemyCapacityLedger):
    def __init__(self, session_factory, cancel_event):
        super().__init__(session_factory)
        self._cancel_event = cancel_event

    def increment_range(self, tx, organization_id, user_id, start_date, end_date, delta):
        super().increment_range(tx, organization_id, user_id, start_date, end_date, delta)
        self._cancel_event.set()


def _service(services, *, ledger=None, session_factory=None, **kwargs):
    factory = session_factory or services["session_factory"]
    return AllocationService(
        factory,
        ledger or services["ledger"],
        services["allocation_repo"],
        **kwargs,
    )


def _assert_untouched(services, ledger_values, user_id="u1"):
    assert ledger_values(user_id, START, END) == {}
    assert services["allocation_repo"].list_by_user(ORG, user_id) == []


def test_ledger_failure_after_increment_leaves_no_trace(services, ledger_values):
    svc = _service(services, ledger=ExplodingLedger(services["session_factory"]))

    result = svc.create_allocation(ORG, "u1", "p1", START, END, 40)

    assert isinstance(result, Err)
    assert result.code == "STORAGE_ERROR"
    _assert_untouched(services, ledger_values)


def test_commit_failure_rolls_back_everything(services, ledger_values):
    real_factory = services["session_factory"]

    def failing_factory():
        session = real_factory()

        def _commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        session.commit = _commit
        return session

    svc = _service(services, session_factory=failing_factory)

    result = svc.create_allocation(ORG, "u1", "p1", START, END, 40)

    assert isinstance(result, Err)
    assert isinstance(result.error, StorageError)
    assert isinstance(result.error.__cause__, OperationalError)
    _assert_untouched(services, ledger_values)


def test_expired_deadline_rolls_back(services, ledger_values):
    svc = _service(services)
    deadline = Deadline(expires_at=0.0, clock=lambda: 1.0)

    result = svc.create_allocation(ORG, "u1", "p1", START, END, 40, deadline=deadline)

    assert isinstance(result, Err)
    assert isinstance(result.error, AllocationCancelledError)
    assert result.code == "DEADLINE_EXCEEDED"
    _assert_untouched(services, ledger_values)


def test_cancellation_during_write_discards_flushed_increments(services, ledger_values):
    cancel = Event()
    ledger = CancellingLedger(services["session_factory"], cancel)
    svc = _service(services, ledger=ledger)

    result = svc.create_allocation(
        ORG, "u1", "p1", START, END, 40, deadline=Deadline.cancellable(cancel)
    )

    assert isinstance(result, Err)
    assert result.code == "ALLOCATION_CANCELLED"
    _assert_untouched(services, ledger_values)


def test_cancelled_before_start_never_writes(services, ledger_values):
    cancel = Event()
    cancel.set()

    result = _service(services).create_allocation(
        ORG, "u1", "p1", START, END, 40, deadline=Deadline.cancellable(cancel)
    )

    assert result.code == "ALLOCATION_CANCELLED"
    _assert_untouched(services, ledger_values)


def test_lock_wait_timeout_is_reported(services, ledger_values):
    registry = UserLockRegistry()
    svc = _service(services, lock_registry=registry, lock_timeout=0.05)

    with registry.hold(ORG, "u1"):
        result = svc.create_allocation(ORG, "u1", "p1", START, END, 40)

    assert isinstance(result, Err)
    assert result.code == "LOCK_TIMEOUT"
    _assert_untouched(services, ledger_values)
    assert registry.active_keys() == 0


def test_failed_write_does_not_emit_events(services):
    svc = _service(services, ledger=ExplodingLedger(services["session_factory"]))
    seen = []
    svc.events.allocation_created.connect(seen.append)
    svc.events.ledger_changed.connect(seen.append)

    svc.create_allocation(ORG, "u1", "p1", START, END, 40)

    assert seen == []


def test_generous_deadline_lets_the_write_commit(services, ledger_values):
    deadline = Deadline.after(30.0)

    result = _service(services).create_allocation(ORG, "u1", "p1", START, END, 40, deadline=deadline)

    assert result.is_ok
    assert not deadline.expired
    assert 0.0 < deadline.remaining() <= 30.0
    assert ledger_values("u1", START, END) == {START: 40, date(2025, 4, 2): 40, END: 40}


def test_cancellation_ends_the_lock_wait_early(services, ledger_values):
    registry = UserLockRegistry()
    svc = _service(services, lock_registry=registry, lock_timeout=2.0)
    cancel = Event()
    trigger = Timer(0.1, cancel.set)

    with registry.hold(ORG, "u1"):
        trigger.start()
        started = time.monotonic()
        result = svc.create_allocation(
            ORG, "u1", "p1", START, END, 40, deadline=Deadline.cancellable(cancel)
        )
        waited = time.monotonic() - started
    trigger.join()

    assert result.code == "ALLOCATION_CANCELLED"
    assert waited < 1.0
    _assert_untouched(services, ledger_values)


def test_deadline_shorter_than_lock_timeout_is_reported_as_deadline(services, ledger_values):
    registry = UserLockRegistry()
    svc = _service(services, lock_registry=registry, lock_timeout=5.0)

    with registry.hold(ORG, "u1"):
        started = time.monotonic()
        result = svc.create_allocation(
            ORG, "u1", "p1", START, END, 40, deadline=Deadline.after(0.1)
        )
        waited = time.monotonic() - started

    assert result.code == "DEADLINE_EXCEEDED"
    assert waited < 1.0
    _assert_untouched(services, ledger_values)


def test_lock_timeout_shorter_than_deadline_is_reported_as_lock_timeout(services):
    registry = UserLockRegistry()
    svc = _service(services, lock_registry=registry, lock_timeout=0.1)

    with registry.hold(ORG, "u1"):
        result = svc.create_allocation(
            ORG, "u1", "p1", START, END, 40, deadline=Deadline.after(30.0)
        )

    assert result.code == "LOCK_TIMEOUT"
    assert registry.active_keys() == 0
