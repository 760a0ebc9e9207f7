# backend/tests/conftest.py
"""
Shared pytest fixtures.

Environment variables are set before any courtside import so the settings
object and module-level engine are built for tests. Each test gets its own
SQLite file database: the booking aggregator reads on worker threads, which
need real connections rather than a single in-memory one.
"""

from datetime import date, time
import os
from typing import Any, Callable, List, Optional, Tuple

os.environ.setdefault("CI", "1")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from courtside.core.enums import ServiceType
from courtside.core.ulid_helper import build_session_id
from courtside.database import Base
import courtside.models  # noqa: F401
from courtside.models.registry import get_binding
from courtside.monitoring.session_metrics import SessionMetricsHook


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'courtside.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


class RecordingMetrics:
    """Metrics backend that remembers every increment."""

    def __init__(self):
        self.calls: List[Tuple[str, str, str, str, str, int]] = []

    def __call__(self, service_type, owner_id, month, day, metric, amount):
        self.calls.append((service_type, owner_id, month, day, metric, amount))

    def count(self, metric: str) -> int:
        return sum(call[5] for call in self.calls if call[4] == metric)


@pytest.fixture
def recorded_metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def metrics_hook(recorded_metrics) -> SessionMetricsHook:
    return SessionMetricsHook(backend=recorded_metrics)


@pytest.fixture
def make_entity(db) -> Callable[..., Any]:
    """Create and commit a schedulable entity for a service type."""

    def _make(service_type: ServiceType, owner_id: str = "owner-1", **fields: Any) -> Any:
        model = get_binding(service_type).entity_model
        fields.setdefault("name", f"{service_type.value} entity")
        entity = model(owner_id=owner_id, **fields)
        db.add(entity)
        db.commit()
        return entity

    return _make


@pytest.fixture
def make_session(db) -> Callable[..., Any]:
    """Create and commit a session row directly, bypassing generation."""

    def _make(
        service_type: ServiceType,
        entity: Any,
        on_date: date,
        start: time = time(16, 0),
        end: time = time(17, 0),
        user_id: Optional[str] = None,
        **fields: Any,
    ) -> Any:
        binding = get_binding(service_type)
        session = binding.session_model(
            session_id=build_session_id(binding.session_id_prefix, entity.id, on_date, start),
            entity_id=entity.id,
            owner_id=entity.owner_id,
            date=on_date,
            start_time=start,
            end_time=end,
            user_id=user_id,
            **fields,
        )
        db.add(session)
        db.commit()
        return session

    return _make
