from __future__ import annotations

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add backend folder to sys.path so `import app...` works in tests when running from backend root
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from app.core.config import Settings  # noqa: E402
from app.core.database import Database  # noqa: E402
from helpers import FakeExtractor  # noqa: E402


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'measures.db'}",
        STORAGE_BACKEND="filesystem",
        STORAGE_DIRECTORY=str(tmp_path / "images"),
        ENVIRONMENT="test",
        SENTRY_DSN=None,
    )


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def client(settings, fake_extractor):
    from app.api.dependencies import get_reading_extractor
    from app.api.main import create_app

    app = create_app(settings)
    app.dependency_overrides[get_reading_extractor] = lambda: fake_extractor
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session(settings):
    database = Database(settings)
    await database.init_db()
    async with database.sessionmaker() as session:
        yield session
    await database.dispose()
