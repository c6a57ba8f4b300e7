"""Pytest configuration and shared fixtures."""

import os

# Settings are read once at import time; pin them before reqflow is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_TO_FILE"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reqflow.api.deps import get_db
from reqflow.api.main import app
from reqflow.core.workflow import Principal, Role, WorkflowService
from reqflow.db import models  # noqa: F401
from reqflow.db.base import Base

from tests.factories import create_employee, create_manager


@pytest.fixture()
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def service(db_session):
    return WorkflowService(db_session)


@pytest.fixture()
def org(db_session):
    """
    Two managers, their employees and an outsider manager.

    mgr1 ── emp1, emp2
    mgr2 ── emp3
    outsider (manager, no reports)
    """
    mgr1 = create_manager(db_session, name="Manager One")
    mgr2 = create_manager(db_session, name="Manager Two")
    outsider = create_manager(db_session, name="Outsider")
    emp1 = create_employee(db_session, manager=mgr1, name="Employee One")
    emp2 = create_employee(db_session, manager=mgr1, name="Employee Two")
    emp3 = create_employee(db_session, manager=mgr2, name="Employee Three")
    return {
        "mgr1": mgr1,
        "mgr2": mgr2,
        "outsider": outsider,
        "emp1": emp1,
        "emp2": emp2,
        "emp3": emp3,
    }


@pytest.fixture()
def principals(org):
    """Principals for every user in ``org``."""
    return {key: Principal(id=user.id, role=Role(user.role)) for key, user in org.items()}


@pytest.fixture()
def client(session_factory):
    """API client bound to the test database."""

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
