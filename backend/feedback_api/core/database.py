"""
Async database engine, session factory, and ORM base.

One pooled engine is shared by every request; there is no application-level
locking on top of it. Consistency comes from the database's own per-row
atomicity (last write wins).

Rules enforced:
  • Every DB call goes through AsyncSession.
  • Sessions are request-scoped via FastAPI's Depends(get_db_session).
  • All models hang off one declarative Base so Alembic sees one metadata.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from feedback_api.core.config import settings


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with options suited to the URL's backend."""
    kwargs: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        # aiosqlite: no server to ping, allow use across the event loop's threads
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # pool_pre_ping: drop stale connections before reuse
        kwargs["pool_pre_ping"] = True
    return create_async_engine(url, **kwargs)


# ── Engine + session factory ────────────────────────────────
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # response models read attributes after commit
)


# ── ORM Base ────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Shared declarative base for all SQLAlchemy models."""


# ── Dependency ──────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a scoped async session for one request.

    Writes are committed by the service that performs them;
    this generator only guarantees cleanup on exit.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
