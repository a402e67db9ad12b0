"""
Skenderaj Places Backend — Test Configuration (conftest.py)
============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   A temporary SQLite database (aiosqlite) stands in for PostgreSQL; an
       in-memory MediaHost stands in for Cloudinary.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── database:     creates all tables before the test, drops them after
    ├── db_session:   AsyncSession on the test database
    ├── media:        FakeMediaHost recording uploads and deletions
    ├── failing_media: FakeMediaHost whose second upload fails
    ├── place_data:   valid create payload (snake_case)
    ├── image_file:   (filename, bytes, content type) tuple for httpx uploads
    └── test_client:  HTTPX AsyncClient wired to the app with `media` injected
"""

import os
import tempfile

# Settings and the engine are built at import time: configure them first
_TEST_DIR = tempfile.mkdtemp(prefix="skenderaj_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["CLOUDINARY_CLOUD_NAME"] = "test-cloud"
os.environ["CLOUDINARY_API_KEY"] = "test-key-not-real"
os.environ["CLOUDINARY_API_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"

from typing import Dict, List, Optional, Set  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.database import Base, async_session_factory, engine  # noqa: E402
from app.exceptions import MediaHostError  # noqa: E402
import app.models.migration  # noqa: E402,F401
import app.models.place  # noqa: E402,F401
from app.services.media_base import MediaHost, UploadedMedia  # noqa: E402

# Smallest PNG header; content is never decoded, only the declared type matters
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


class FakeMediaHost(MediaHost):
    """
    In-memory media host.

    fail_on_upload: 1-based index of the upload call that raises MediaHostError.
    """

    def __init__(self, fail_on_upload: Optional[int] = None):
        self.fail_on_upload = fail_on_upload
        self.stored: Dict[str, bytes] = {}
        self.upload_calls = 0
        self.deleted: List[str] = []
        self.broken_deletes: Set[str] = set()

    async def upload(self, content: bytes, mime_type: str) -> UploadedMedia:
        self.upload_calls += 1
        if self.fail_on_upload == self.upload_calls:
            raise MediaHostError("Error uploading image")
        public_id = f"skenderaj-places/img{self.upload_calls}"
        self.stored[public_id] = content
        return UploadedMedia(
            url=f"https://media.test/{public_id}.png",
            public_id=public_id,
        )

    async def delete(self, public_id: str) -> bool:
        if public_id in self.broken_deletes:
            raise MediaHostError("Error deleting image")
        if public_id not in self.stored:
            return False
        del self.stored[public_id]
        self.deleted.append(public_id)
        return True

    async def health_check(self) -> bool:
        return True


@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def media():
    return FakeMediaHost()


@pytest.fixture
def failing_media():
    """Media host whose second upload fails."""
    return FakeMediaHost(fail_on_upload=2)


@pytest.fixture
def place_data():
    return {
        "name": "Kalaja e Skënderajt",
        "description": "Fortesë mesjetare mbi kodër.",
        "location": "Skenderaj",
        "historical_significance": "Qendër mbrojtëse e rajonit të Drenicës.",
        "image_url": "https://media.test/kalaja.png",
        "images": [],
        "latitude": 42.7467,
        "longitude": 20.7886,
    }


@pytest.fixture
def image_file():
    return ("photo.png", PNG_BYTES, "image/png")


@pytest_asyncio.fixture
async def test_client(database, media):
    """
    Async HTTP client for endpoint tests.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    from app.main import app
    from app.services.cloudinary_service import get_media_host

    app.dependency_overrides[get_media_host] = lambda: media
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
