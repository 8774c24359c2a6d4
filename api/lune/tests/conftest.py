"""Shared pytest fixtures for API tests and database isolation."""

from __future__ import annotations

import uuid
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from passlib.context import CryptContext
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lune.api.deps import get_db
from lune.core import security
from lune.core.config import settings
from lune.db.base import Base
from lune.ingestion import reset_connectors
from lune.main import app


@pytest.fixture(autouse=True)
def _use_plaintext_passwords(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(security, "pwd_context", CryptContext(schemes=["plaintext"]))


@pytest.fixture(autouse=True)
def _fresh_connectors():
    reset_connectors()
    yield
    reset_connectors()


def _test_database_url(tmp_path: Path) -> str:
    if settings.test_database_url:
        return settings.test_database_url
    return f"sqlite+aiosqlite:///{tmp_path / 'lune-test.db'}"


@pytest_asyncio.fixture()
async def session(tmp_path: Path) -> AsyncSession:
    database_url = _test_database_url(tmp_path)
    url = make_url(database_url)
    schema_name: str | None = None
    engine = create_async_engine(database_url, future=True)
    if url.drivername.startswith("postgresql"):
        # Isolate each test run in its own schema for parallel-friendly cleanup.
        schema_name = f"test_{uuid.uuid4().hex}"
        engine = engine.execution_options(schema_translate_map={None: schema_name})
    async with engine.begin() as conn:
        if schema_name:
            await conn.exec_driver_sql(f'CREATE SCHEMA IF NOT EXISTS "{schema_name}"')
        await conn.run_sync(Base.metadata.create_all)
    TestingSession = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        async with TestingSession() as session:
            yield session
    finally:
        async with engine.begin() as conn:
            if schema_name:
                await conn.exec_driver_sql(f'DROP SCHEMA IF EXISTS "{schema_name}" CASCADE')
            else:
                await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(session: AsyncSession) -> AsyncClient:
    async def _get_test_db():
        yield session

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture()
async def user(session: AsyncSession):
    from lune.models.user import User

    account = User(email=f"reader_{uuid.uuid4().hex[:8]}@example.com", hashed_password="x", display_name="Reader")
    session.add(account)
    await session.commit()
    await session.refresh(account)
    return account
