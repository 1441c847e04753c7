from datetime import date
from threading import Barrier, Thread

from core.domain.results import Conflict, Ok
from core.services.capacity import AllocationService, UserLockRegistry

ORG = "org-1"
DAY = date(2025, 6, 2)


def _run_concurrently(calls):
    barrier = Barrier(len(calls))
    results = [None] * len(calls)
    errors = []

    def _worker(index, call):
        try:
            barrier.wait(timeout=10)
            results[index] = call()
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [Thread(target=_worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert not errors, errors
    return results


def test_racing_requests_for_same_user_never_overbook(services, ledger_values):
    svc = services["allocation_service"]

    results = _run_concurrently(
        [
            lambda: svc.create_allocation(ORG, "u1", "p1", DAY, DAY, 60),
            lambda: svc.create_allocation(ORG, "u1", "p2", DAY, DAY, 60),
        ]
    )

    assert sorted(type(r).__name__ for r in results) == ["Conflict", "Ok"]
    assert ledger_values("u1", DAY, DAY) == {DAY: 60}
    assert len(services["allocation_repo"].list_by_user(ORG, "u1")) == 1
    conflict = next(r for r in results if isinstance(r, Conflict))
    assert conflict.conflicts[0].current_allocation == 60
    assert conflict.conflicts[0].would_be_allocation == 120


def test_many_small_requests_fill_exactly_to_capacity(services, ledger_values):
    svc = services["allocation_service"]

    results = _run_concurrently(
        [
            (lambda i=i: svc.create_allocation(ORG, "u1", f"p{i}", DAY, DAY, 30))
            for i in range(5)
        ]
    )

    assert sum(isinstance(r, Ok) for r in results) == 3
    assert ledger_values("u1", DAY, DAY) == {DAY: 90}


def test_different_users_do_not_block_each_other(services, ledger_values):
    svc = services["allocation_service"]
    users = [f"u{i}" for i in range(4)]

    results = _run_concurrently(
        [(lambda u=u: svc.create_allocation(ORG, u, "p1", DAY, DAY, 100)) for u in users]
    )

    assert all(isinstance(r, Ok) for r in results)
    for user in users:
        assert ledger_values(user, DAY, DAY) == {DAY: 100}


def test_registry_drops_idle_entries():
    registry = UserLockRegistry()

    with registry.hold(ORG, "u1"):
        with registry.hold(ORG, "u2"):
            assert registry.active_keys() == 2

    assert registry.active_keys() == 0


def test_writers_without_a_shared_lock_registry_never_overbook_a_fresh_day(
    services, ledger_values
):
    # one registry each, as two worker processes would have
    writers = [
        AllocationService(
            services["session_factory"],
            services["ledger"],
            services["allocation_repo"],
            lock_registry=UserLockRegistry(),
        )
        for _ in range(2)
    ]
    fresh_day = date(2025, 7, 1)
    assert ledger_values("u1", fresh_day, fresh_day) == {}

    results = _run_concurrently(
        [
            (lambda w=w, i=i: w.create_allocation(ORG, "u1", f"p{i}", fresh_day, fresh_day, 60))
            for i, w in enumerate(writers)
        ]
    )

    assert sorted(type(r).__name__ for r in results) == ["Conflict", "Ok"]
    assert ledger_values("u1", fresh_day, fresh_day) == {fresh_day: 60}
    assert len(services["allocation_repo"].list_by_user(ORG, "u1")) == 1
