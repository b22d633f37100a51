import pytest
import os
import requests

from fake_backend import API_KEY, BASE_URL, FakeSupabase

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["SUPABASE_PROJECT_URL"] = BASE_URL
os.environ["SUPABASE_API_KEY"] = API_KEY
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_CACHING"] = "true"

from jobboard.dependencies import get_backend_client, get_cache, get_identity_client
from jobboard.main import app
from jobboard.services.auth import IdentityClient
from jobboard.services.backend import BackendClient
from jobboard.services.cache import RevalidatingCache
from jobboard.session import JobBoardSession
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def fake_backend():
    """A fresh in-memory table + identity service for each test."""
    return FakeSupabase()

@pytest.fixture(scope="function")
def http_session(fake_backend):
    session = requests.Session()
    session.mount(BASE_URL, fake_backend)
    yield session
    session.close()

@pytest.fixture(scope="function")
def backend_client(http_session):
    return BackendClient(BASE_URL, API_KEY, session=http_session)

@pytest.fixture(scope="function")
def identity_client(http_session):
    return IdentityClient(BASE_URL, API_KEY, session=http_session)

@pytest.fixture(scope="function")
def cache():
    """Long dedupe interval so reads within a test never revalidate in the background."""
    c = RevalidatingCache(dedupe_interval=60, max_workers=2)
    yield c
    c.shutdown()

@pytest.fixture(scope="function")
def owner(fake_backend):
    """A hiring account with a live access token."""
    return fake_backend.create_user("owner@example.com", full_name="Olivia Owner")

@pytest.fixture(scope="function")
def other_user(fake_backend):
    return fake_backend.create_user("other@example.com", full_name="Oscar Other")

@pytest.fixture(scope="function")
def auth_headers():
    """Helper fixture to build bearer headers for a fake user."""
    def _auth_headers(user):
        return {"Authorization": f"Bearer {user['access_token']}"}
    return _auth_headers

@pytest.fixture(scope="function")
def board(backend_client, identity_client, cache):
    """A long-lived client session wired to the fake backend."""
    with JobBoardSession(backend_client, identity_client, cache=cache, page_size=5,
                         redirect_url="https://jobs.example.com/auth/callback") as b:
        yield b

@pytest.fixture(scope="function")
def client(backend_client, identity_client, cache):
    """Get a TestClient whose backend calls go to the fake backend via dependency override."""
    app.dependency_overrides[get_backend_client] = lambda: backend_client
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
