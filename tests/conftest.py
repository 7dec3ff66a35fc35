"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.models.base import Base
from app.db.session import get_db
from app.services import email as email_module
from app.services import email_template_service as template_module


# Test database URL
# WHY: Using SQLite for tests eliminates external database dependencies
# and makes tests faster. StaticPool keeps the single in-memory database
# alive across connections.
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope ensures each test gets a fresh database state,
    preventing test pollution and ensuring test isolation.
    """
    engine = create_async_engine(
        TEST_ASYNC_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    Yields:
        AsyncSession: Database session for the test
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: AsyncClient allows testing FastAPI endpoints without running
    a real server, making tests faster and more reliable.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        """Override database dependency with test session."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_org(db_session: AsyncSession):
    """
    Create a test organization.

    WHY: Every announcement, employee and view is tenant-owned.
    """
    from tests.factories import OrganizationFactory

    return await OrganizationFactory.create(db_session, name="Acme Corp")


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession, test_org):
    """Create a tenant administrator (HR manager) in test_org."""
    from tests.factories import UserFactory

    return await UserFactory.create_admin(
        db_session, org_id=test_org.id, email="hr.admin@example.com"
    )


@pytest_asyncio.fixture
async def test_employee(db_session: AsyncSession, test_org):
    """Create an active employee in test_org."""
    from tests.factories import UserFactory

    return await UserFactory.create_employee(
        db_session, org_id=test_org.id, email="employee@example.com"
    )


@pytest.fixture(autouse=True)
def use_mock_email_provider(monkeypatch):
    """
    Use mock email provider for all tests.

    WHY: Tests should not send real emails. Clearing SMTP_HOST and
    RESEND_API_KEY makes EmailService fall back to MockEmailProvider,
    which records every message in MockEmailProvider.sent_emails.
    """
    from app.core import config

    monkeypatch.setattr(config.settings, "SMTP_HOST", None)
    monkeypatch.setattr(config.settings, "RESEND_API_KEY", None)

    # Reset singletons so they pick up the patched settings
    email_module._email_service = None
    template_module._renderer = None
    email_module.MockEmailProvider.clear_sent_emails()

    yield

    email_module._email_service = None
    template_module._renderer = None
    email_module.MockEmailProvider.clear_sent_emails()
