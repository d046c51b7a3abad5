"""Test configuration and fixtures."""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from workboard.api import app
from workboard.db.base import Base, get_db
from workboard.storage import FileBlobStore
from workboard.tracker.primitives import CallerContext
from workboard.tracker.routes import get_attachment_store
from workboard.tracker.services import WorkspaceService

# In-memory SQLite shared by the API and the service-level fixtures
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override the get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    """Fresh tables for every test."""
    from workboard.db import models  # noqa: F401

    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def caller() -> CallerContext:
    return CallerContext(workspace_id="ws-test", user_id="user-test")


@pytest.fixture
def workspace(db, caller):
    """The caller's workspace, bootstrapped through the service."""
    workspace, _ = WorkspaceService(db, caller).get_or_create(
        user_email="owner@example.com",
        user_name="Owner",
        workspace_name="Test Workspace",
    )
    return workspace


@pytest.fixture
def blob_store(tmp_path) -> FileBlobStore:
    return FileBlobStore(tmp_path / "blobs")


@pytest.fixture
def client(blob_store) -> Generator[TestClient, None, None]:
    """API client bound to the test database and a temporary blob store."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_store] = lambda: blob_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def default_workspace(client) -> dict:
    """Bootstrap the configured default workspace over HTTP."""
    response = client.get("/api/workspace")
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture
def api_list(client, default_workspace) -> dict:
    response = client.post("/api/lists", json={"name": "Sprint 1"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def session_factory() -> sessionmaker:
    return TestSessionLocal
