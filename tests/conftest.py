"""
Shared test configuration and fixtures.

Provides PostgreSQL-backed database fixtures for the partner store, a fake
Redis client for notification tests, and the mocked collaborators used by the
resolver tests.
"""

import os
import uuid
from unittest.mock import AsyncMock, Mock
import pytest
import pytest_asyncio
import fakeredis.aioredis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from org.hyperledger.bpa.model.base import Base
from org.hyperledger.bpa.model.partner import PartnerRepository
from org.hyperledger.bpa.notify import RedisNotificationSink
from org.hyperledger.bpa.resolve.did_document import DidDocumentClient
from org.hyperledger.bpa.resolve.did_resolver import DidResolver
from org.hyperledger.bpa.resolve.lookup import PartnerLookup


# Test database configuration
TEST_DB_HOST = os.getenv("TEST_DB_HOST", "postgres")
TEST_DB_PORT = os.getenv("TEST_DB_PORT", "5432")
TEST_DB_USER = os.getenv("TEST_DB_USER", "postgres")
TEST_DB_PASSWORD = os.getenv("TEST_DB_PASSWORD", "password")

# Admin URL for database creation/deletion (connects to postgres database)
ADMIN_DATABASE_URL = f"postgresql+asyncpg://{TEST_DB_USER}:{TEST_DB_PASSWORD}@{TEST_DB_HOST}:{TEST_DB_PORT}/postgres"


async def check_postgres_available():
    """Check if PostgreSQL is available for testing."""
    try:
        admin_engine = create_async_engine(ADMIN_DATABASE_URL, echo=False)
        async with admin_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        await admin_engine.dispose()
        return True
    except Exception:
        return False


@pytest_asyncio.fixture(scope="function")
async def test_database():
    """Create and clean up a uniquely named test database."""
    if not await check_postgres_available():
        pytest.skip("PostgreSQL database not available for testing")

    unique_db_name = f"bpa_test_{uuid.uuid4().hex[:8]}"
    unique_db_url = (
        f"postgresql+asyncpg://{TEST_DB_USER}:{TEST_DB_PASSWORD}@"
        f"{TEST_DB_HOST}:{TEST_DB_PORT}/{unique_db_name}"
    )

    admin_engine = create_async_engine(
        ADMIN_DATABASE_URL, echo=False, isolation_level="AUTOCOMMIT"
    )

    try:
        async with admin_engine.connect() as conn:
            await conn.execute(text(f"CREATE DATABASE {unique_db_name}"))

        yield unique_db_url

    finally:
        async with admin_engine.connect() as conn:
            await conn.execute(text(f"DROP DATABASE IF EXISTS {unique_db_name}"))
        await admin_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def engine(test_database):
    """Create async SQLAlchemy engine with all tables."""
    engine = create_async_engine(test_database, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(session_maker):
    """Create async database session for testing."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def fake_redis_client():
    """Provide fake Redis client for unit tests."""
    client = fakeredis.aioredis.FakeRedis(decode_responses=False)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def partner_repository():
    repository = Mock(spec=PartnerRepository)
    repository.find_by_id = AsyncMock(return_value=None)
    repository.find_proof_by_id = AsyncMock(return_value=None)
    repository.update = AsyncMock()
    repository.update_verifiable_presentation = AsyncMock()
    return repository


@pytest.fixture
def partner_lookup():
    lookup = Mock(spec=PartnerLookup)
    lookup.lookup_partner = AsyncMock()
    return lookup


@pytest.fixture
def did_document_client():
    client = Mock(spec=DidDocumentClient)
    client.get_did_document = AsyncMock(return_value=None)
    return client


@pytest.fixture
def notification_sink():
    sink = Mock(spec=RedisNotificationSink)
    sink.publish = AsyncMock()
    return sink


@pytest.fixture
def did_resolver(partner_repository, partner_lookup, did_document_client, notification_sink):
    return DidResolver(
        partner_repository,
        partner_lookup,
        did_document_client,
        notification_sink,
    )
