"""
MoodTrack Backend — Test Configuration (conftest.py)
======================================================

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:        in-memory SQLite engine with every table created
    ├── db_session:       AsyncSession bound to db_engine
    ├── test_client:      HTTPX AsyncClient over ASGITransport, sessions from db_engine
    └── temp_music_dir:   empty directory for generated audio
"""

import os
import tempfile

# Override settings BEFORE any moodtrack import: config.settings is built at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AUTH_SECRET"] = "test-secret-for-hs256-signing-0123456789abcdef"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["HUGGINGFACE_API_TOKEN"] = "hf-test-token"
os.environ["MUSIC_DIR"] = tempfile.mkdtemp(prefix="moodtrack_test_")
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import moodtrack.models  # noqa: E402,F401
from moodtrack.database import Base, get_db_session  # noqa: E402


@pytest_asyncio.fixture
async def db_engine():
    """One private in-memory database per test; StaticPool keeps it alive."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def temp_music_dir(tmp_path):
    music_dir = tmp_path / "music"
    music_dir.mkdir()
    return music_dir


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX client talking to the app in-process.

    ASGITransport does not run the lifespan, so no index sync or pool startup
    happens here; every request gets a session on the per-test engine.
    """
    from moodtrack.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
