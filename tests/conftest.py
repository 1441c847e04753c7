# tests/conftest.py
import pytest

from infra.config import EngineSettings
from infra.db.base import Base, build_engine
from infra.services import build_service_dict

ORG = "org-1"


@pytest.fixture
def engine(tmp_path):
    # file database so worker threads get their own connections
    engine = build_engine(f"sqlite:///{(tmp_path / 'capacity.db').as_posix()}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(services):
    return services["session_factory"]


@pytest.fixture
def services(engine):
    settings = EngineSettings(db_url=str(engine.url), lock_timeout_seconds=5.0)
    return build_service_dict(settings, engine=engine)


@pytest.fixture
def seed_ledger(services):
    """Write ledger rows directly, bypassing the allocation service."""
    factory = services["session_factory"]
    ledger = services["ledger"]

    def _seed(user_id, start, end, pct, organization_id=ORG):
        session = factory()
        try:
            ledger.increment_range(session, organization_id, user_id, start, end, pct)
            session.commit()
        finally:
            session.close()

    return _seed


@pytest.fixture
def ledger_values(services):
    """Map of date -> allocated percentage for one user."""
    ledger = services["ledger"]

    def _values(user_id, start, end, organization_id=ORG):
        return {
            e.capacity_date: e.allocated_percentage
            for e in ledger.get_range(organization_id, user_id, start, end)
        }

    return _values
