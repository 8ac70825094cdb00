"""
Pytest fixtures for testing
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from taskdesk.infrastructure.db.session import Base
from taskdesk.infrastructure.db.models import TaskModel
from taskdesk.infrastructure.store import RecordStore


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs routes in a worker thread)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def store(db_session) -> RecordStore:
    return RecordStore(db_session)


@pytest.fixture
def sample_account_id():
    """Sample account ID for tests"""
    return 1


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def make_template(db_session, sample_account_id):
    """Factory: recurring template row, returns the ORM object."""
    def _make(title="Invoice clients", rule="daily", **fields):
        tmpl = TaskModel(
            user_id=fields.pop("user_id", sample_account_id),
            title=title,
            status="recurring",
            is_recurring=True,
            recurrence_rule=rule,
            is_paused=fields.pop("is_paused", False),
            created_at=fields.pop("created_at", _utc(2024, 1, 1, 9, 0)),
            **fields,
        )
        db_session.add(tmpl)
        db_session.commit()
        return tmpl
    return _make


@pytest.fixture
def make_instance(db_session, sample_account_id):
    """Factory: generated instance row for a template."""
    def _make(template, due_date, created_at, **fields):
        inst = TaskModel(
            user_id=fields.pop("user_id", sample_account_id),
            title=template.title,
            status=fields.pop("status", "today"),
            is_recurring=False,
            parent_task_id=template.id,
            due_date=due_date,
            created_at=created_at,
            **fields,
        )
        db_session.add(inst)
        db_session.commit()
        return inst
    return _make
