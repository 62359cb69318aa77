"""Shared fixtures.

Services run against a mocked Cassandra session whose ``prepare`` returns
the CQL text itself, so ``aexecute`` can answer each statement by matching
a fragment of its query (see ``tests.factories.CqlRouter``).
"""

import os
from unittest.mock import AsyncMock, Mock

import pytest
from cassandra.cluster import Session
from fastapi import FastAPI
from fastapi.testclient import TestClient


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", "/tmp/newsdesk-test/logs")
os.environ.setdefault("UPLOAD_DIR", "/tmp/newsdesk-test/uploads")
os.environ.setdefault("CASSANDRA_KEYSPACE", "test_ks")

from src.auth.permissions import UserRole  # noqa: E402
from src.auth.schemas import AuthenticatedUser  # noqa: E402
from tests.factories import CqlRouter, make_user  # noqa: E402


@pytest.fixture
def cql() -> CqlRouter:
    return CqlRouter()


@pytest.fixture
def mock_session(cql: CqlRouter) -> Mock:
    """Mock Cassandra session wired to the CQL router."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda query: query)

    async def route(statement, params=None):
        return await cql(statement, params)

    session.aexecute = AsyncMock(side_effect=route)
    return session


@pytest.fixture
def admin() -> AuthenticatedUser:
    return make_user(UserRole.ADMIN)


@pytest.fixture
def editor() -> AuthenticatedUser:
    return make_user(UserRole.EDITOR)


@pytest.fixture
def author_user() -> AuthenticatedUser:
    return make_user(UserRole.AUTHOR)


@pytest.fixture
def reporter() -> AuthenticatedUser:
    return make_user(UserRole.REPORTER)


@pytest.fixture
def app() -> FastAPI:
    """Fresh application; the lifespan (Cassandra, Redis) is never entered."""
    from src.main import create_app

    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def api(app: FastAPI, mock_session: Mock) -> TestClient:
    """Client whose services run against the mocked session."""
    from src.main import init_services

    init_services(app, mock_session)
    return TestClient(app, raise_server_exceptions=False)
