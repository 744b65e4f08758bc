"""
MET API — Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied before any met_api import so the
       settings singleton sees them.

Fixtures:
    repositories:  fresh in-memory Repositories for every collection
    file_service:  FileService rooted in a temporary uploads directory
    test_client:   HTTPX AsyncClient bound to an app using the two above
    auth_headers / other_auth_headers: bearer headers for two users
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_met.db"
os.environ["UPLOADS_PATH"] = tempfile.mkdtemp(prefix="met_api_uploads_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEFAULT_TIMEZONE"] = "America/Chicago"
for _domain in ("VICE_BANK", "NOTES", "BLOG", "FILES", "BUDGET"):
    os.environ[f"{_domain}_STORAGE"] = "memory"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from met_api.middleware.auth import StaticTokenVerifier
from met_api.services.file_service import FileService
from met_api.storage import Repositories

TEST_TOKENS = {
    "test-token": "user-1",
    "other-token": "user-2",
}


@pytest.fixture
def repositories() -> Repositories:
    return Repositories.in_memory()


@pytest.fixture
def file_service(tmp_path) -> FileService:
    return FileService(uploads_path=str(tmp_path / "uploads"), max_file_size=1024)


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-token"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": "Bearer other-token"}


@pytest_asyncio.fixture
async def test_client(repositories, file_service):
    """
    Async HTTP client talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from met_api.main import create_app

    app = create_app(
        repositories=repositories,
        file_service=file_service,
        verifier=StaticTokenVerifier(TEST_TOKENS),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
