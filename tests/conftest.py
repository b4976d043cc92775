"""Shared test fixtures for Staging2Live."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from backend.config import Settings
from backend.datastore import DataStore
from backend.models.base import Base

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from backend.services.sync_service import PostSyncHook

TEST_SYNC_TOKEN = "test-sync-token-with-at-least-32-characters"

# Staging and production copies of a small site schema, side by side.
SITE_SCHEMA = (
    "CREATE TABLE {prefix}posts ("
    "ID INTEGER PRIMARY KEY, post_title TEXT NOT NULL, post_status TEXT DEFAULT 'draft', "
    "post_parent INTEGER DEFAULT 0)",
    "CREATE TABLE {prefix}postmeta ("
    "meta_id INTEGER PRIMARY KEY, post_id INTEGER NOT NULL, meta_key TEXT, meta_value TEXT)",
    "CREATE TABLE {prefix}options ("
    "option_name TEXT PRIMARY KEY, option_value TEXT, autoload TEXT DEFAULT 'yes')",
    "CREATE TABLE {prefix}log (message TEXT)",
)


class RecordingHook:
    """Post-sync hook that counts its invocations."""

    def __init__(self) -> None:
        self.calls = 0

    async def replace_staging_url_in_live_database(self) -> None:
        self.calls += 1


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    root = tmp_path / "site" / "staging"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def production_root(tmp_path: Path, staging_root: Path) -> Path:
    return staging_root.parent


@pytest.fixture
def test_settings(tmp_path: Path, production_root: Path) -> Settings:
    """Create test settings with temporary paths."""
    db_path = tmp_path / "test.db"
    return Settings(
        _env_file=None,
        debug=True,
        sync_token=TEST_SYNC_TOKEN,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        production_root=production_root,
        file_changes_path=tmp_path / "file_changes.json",
        db_changes_path=tmp_path / "db_changes.json",
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(
    db_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession]:
    """Create a test database session with the service tables in place."""
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def site_engine(db_engine: AsyncEngine, test_settings: Settings) -> AsyncEngine:
    """Database engine holding empty staging and production site tables."""
    async with db_engine.begin() as conn:
        for prefix in (test_settings.staging_prefix, test_settings.production_prefix):
            for statement in SITE_SCHEMA:
                await conn.execute(text(statement.format(prefix=prefix)))
    return db_engine


@pytest.fixture
def store(site_engine: AsyncEngine) -> DataStore:
    return DataStore(site_engine)


async def insert_rows(engine: AsyncEngine, table: str, *rows: dict[str, Any]) -> None:
    """Insert raw rows into a site table."""
    async with engine.begin() as conn:
        for row in rows:
            columns = ", ".join(row)
            params = ", ".join(f":{column}" for column in row)
            await conn.execute(text(f"INSERT INTO {table} ({columns}) VALUES ({params})"), row)


async def fetch_rows(engine: AsyncEngine, table: str) -> list[dict[str, Any]]:
    """Return every row of a site table as dicts."""
    async with engine.connect() as conn:
        result = await conn.execute(text(f"SELECT * FROM {table}"))
        return [dict(row) for row in result.mappings().all()]


def write_json(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


@asynccontextmanager
async def create_test_client(
    settings: Settings, post_sync_hook: PostSyncHook | None = None
) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client with a fully initialized app.

    Runs the application lifespan explicitly because ASGITransport does not
    trigger it.
    """
    from backend.main import create_app, lifespan

    app = create_app(settings)
    if post_sync_hook is not None:
        app.state.post_sync_hook = post_sync_hook
    async with lifespan(app):
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
