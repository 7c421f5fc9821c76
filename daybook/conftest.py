# daybook/conftest.py
import sys
from pathlib import Path

import pytest

# Add repository root to PYTHONPATH
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from daybook.core.session import UserSession
from daybook.features.documents.store import InMemoryDocumentStore
from daybook.models.entitlement import Tier


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def basic_session():
    return UserSession("user_basic", tier=Tier.BASIC, email="basic@example.com")


@pytest.fixture
def premium_session():
    return UserSession("user_premium", tier=Tier.PREMIUM, email="premium@example.com")


@pytest.fixture
def auth_provider():
    from daybook.tests.mocks import FakeAuthProvider

    return FakeAuthProvider()


@pytest.fixture
def sqlite_store(tmp_path):
    """SQL document store on a throwaway SQLite file."""
    from daybook.core.database import create_all_tables, dispose_engine, init_engine
    from daybook.features.documents.sql_store import SqlDocumentStore

    init_engine(f"sqlite:///{tmp_path / 'daybook.db'}")
    create_all_tables()
    yield SqlDocumentStore()
    dispose_engine()


@pytest.fixture
def client(store, auth_provider):
    """TestClient over the app with a fresh in-memory store per test."""
    from fastapi.testclient import TestClient

    from daybook.features.sessions.registry import WorkspaceRegistry
    from daybook.main import app

    app.state.store = store
    app.state.auth_provider = auth_provider
    app.state.workspaces = WorkspaceRegistry(store, provider=auth_provider, debounce_seconds=30)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.state.store = None
    app.state.auth_provider = None
    app.state.workspaces = None
