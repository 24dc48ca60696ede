"""Pytest configuration and fixtures for WineCellar tests.

Each test gets its own SQLite file, so tests never share rows.
"""

import io
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from winecellar.config import DatabaseConfig, ImageConfig, Settings, WinecellarConfig
from winecellar.database import Database, close_db, init_db
from winecellar.main import create_app
from winecellar.services import cellar_store

TEST_GRAPES = ["Barbera", "Cabernet Sauvignon", "Merlot", "Nebbiolo"]

IPHONE_AGENT = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15"


def make_image_bytes(width: int, height: int, fmt: str = "PNG", color: str = "red") -> bytes:
    """Encode a solid-colour test image."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite URL for a fresh per-test database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    """Settings pointing at the per-test database."""
    return Settings(WinecellarConfig(database=DatabaseConfig(url=database_url)))


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """Open the per-test database with its schema created."""
    db = await init_db(database_url)
    yield db
    await close_db(db)


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """A session on the per-test database."""
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def grapes(db_session: AsyncSession) -> list[str]:
    """Seed the grape catalog."""
    await cellar_store.add_catalog_grapes(db_session, TEST_GRAPES)
    return TEST_GRAPES


@pytest_asyncio.fixture
async def client(test_settings: Settings, database: Database) -> AsyncGenerator[AsyncClient, None]:
    """Async test client for an app bound to the per-test database.

    ASGITransport does not run the lifespan, so the database is attached here.
    """
    app = create_app(test_settings)
    app.state.db = database
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def image_options() -> ImageConfig:
    """Default image pipeline options."""
    return ImageConfig()


@pytest.fixture
def landscape_png() -> bytes:
    """1024x512 PNG, larger than the stored bound."""
    return make_image_bytes(1024, 512)


@pytest.fixture
def small_jpeg() -> bytes:
    """200x100 JPEG, already inside the stored bound."""
    return make_image_bytes(200, 100, fmt="JPEG")
