"""
Accounting Notes Backend — Test Configuration (conftest.py)
=============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file and upload directory
       under pytest's tmp_path, so tests never touch a real server database.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings pointing at tmp_path
    ├── test_app: create_app(test_settings)
    ├── test_client: HTTPX AsyncClient talking to test_app with its lifespan running
    ├── database: connected Database for repository tests
    ├── file_service: FileService over a temporary directory
    ├── mock_db_session: Mock AsyncSession for service unit tests
    └── sample_image_bytes: Fake image content for upload tests
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Fixtures build their own Settings; this only quiets the module-level app
# that app.main creates on import.
os.environ["LOG_LEVEL"] = "WARNING"

from app.config import Settings  # noqa: E402
from app.database import Database  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.file_service import FileService  # noqa: E402


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}",
        storage_root=str(tmp_path / "uploads"),
        log_level="WARNING",
    )


@pytest.fixture
def test_app(test_settings):
    return create_app(test_settings)


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    ASGITransport does not send lifespan events, so the app's lifespan is
    entered explicitly; that connects the database and creates the
    upload directory.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest_asyncio.fixture
async def database(test_settings):
    db = Database(test_settings)
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def file_service(temp_storage):
    return FileService(storage_root=temp_storage, max_file_size=1024, max_files=3)


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Service tests patch NoteRepository, so the session is only passed through.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_note_data():
    return {
        "id": uuid4(),
        "title": "Bank reconciliation worked examples",
        "author_name": "Rahim",
        "paper": "1st Paper",
        "chapter_id": 3,
        "images": ["/uploads/image-1718000000000-1.jpg", "/uploads/image-1718000000001-2.png"],
        "created_at": datetime.now(timezone.utc),
    }
