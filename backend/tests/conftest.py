"""
Pytest configuration and fixtures for the test suite.

Every test gets a fresh SQLite database file (aiosqlite), so tests never
share rows. The FastAPI app's session dependency is overridden to use it.
"""

import datetime
import os
import uuid

# Set test environment variables before importing the app
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-32chars-minimum"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["NOTIFICATION_ADMIN_EMAIL"] = ""
os.environ["BREVO_API_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["DEFAULT_PROJECT_OWNER_EMAIL"] = ""
os.environ["UNKNOWN_API_KEY_POLICY"] = "degrade"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from feedback_api.auth.credentials import generate_api_key, hash_password
from feedback_api.auth.tokens import create_access_token
from feedback_api.core.database import Base, build_engine, get_db_session
from feedback_api.models.feedback import Feedback
from feedback_api.models.principal import Principal
from feedback_api.models.project import Project

TEST_PASSWORD = "correct-horse-battery"
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    """A session for calling services directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """Async HTTP client bound to the app, backed by the per-test database."""
    from feedback_api.main import app

    async def _override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Data builders ───────────────────────────────────────────
# Each builder commits in its own short-lived session so rows are visible
# to both service-level sessions and API requests.


@pytest.fixture
def make_principal(session_factory):
    async def _make(email: str | None = None, *, created_at: datetime.datetime | None = None) -> Principal:
        principal = Principal(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=_TEST_PASSWORD_HASH,
            name="Test User",
        )
        if created_at is not None:
            principal.created_at = created_at
        async with session_factory() as s:
            s.add(principal)
            await s.commit()
        return principal

    return _make


@pytest.fixture
def make_project(session_factory):
    async def _make(
        owner: Principal,
        name: str = "Marketing site",
        *,
        is_active: bool = True,
        created_at: datetime.datetime | None = None,
    ) -> Project:
        project = Project(
            name=name,
            domain="https://example.com",
            api_key=generate_api_key(),
            is_active=is_active,
            owner_id=owner.id,
        )
        if created_at is not None:
            project.created_at = created_at
        async with session_factory() as s:
            s.add(project)
            await s.commit()
        return project

    return _make


@pytest.fixture
def make_feedback(session_factory):
    async def _make(
        project: Project | None,
        *,
        message: str = "Nice widget",
        rating: int | None = None,
        created_at: datetime.datetime | None = None,
    ) -> Feedback:
        feedback = Feedback(
            message=message,
            rating=rating,
            project_id=project.id if project is not None else None,
        )
        if created_at is not None:
            feedback.created_at = created_at
        async with session_factory() as s:
            s.add(feedback)
            await s.commit()
        return feedback

    return _make


@pytest.fixture
def auth_headers():
    def _headers(principal: Principal) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(principal.id)}"}

    return _headers
