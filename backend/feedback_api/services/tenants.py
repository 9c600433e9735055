"""
Tenant directory — maps widget API keys to projects.

Resolution rules:
  • No key → no lookup, nothing resolved. The caller falls back to the
    default project.
  • Key present → exact, case-sensitive match on projects.api_key. A miss
    also resolves nothing; what happens next is the ingestion policy's
    call, not this module's.

Default project:
  Created lazily, at most once, the first time a submission arrives
  without a usable key. Its owner is the principal named by
  DEFAULT_PROJECT_OWNER_EMAIL, or the earliest-created principal when that
  setting is empty. With no principals in the system there is nobody to
  own it and creation fails with NoPrincipalAvailable.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.credentials import generate_api_key
from feedback_api.core.config import settings
from feedback_api.core.errors import NoPrincipalAvailable
from feedback_api.models.principal import Principal
from feedback_api.models.project import DEFAULT_PROJECT_NAME, Project

logger = logging.getLogger(__name__)


async def resolve_tenant(
    session: AsyncSession,
    api_key: str | None,
) -> Project | None:
    """Return the project owning `api_key`, or None when absent/unknown."""
    if not api_key:
        return None

    stmt = select(Project).where(Project.api_key == api_key)
    result = await session.execute(stmt)
    project = result.scalar_one_or_none()

    if project is None:
        # Only a prefix — the full key is a credential
        logger.info("API key %s… matched no project", api_key[:8])
    return project


async def _find_default_tenant(session: AsyncSession) -> Project | None:
    stmt = select(Project).where(Project.is_default.is_(True))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _default_owner(session: AsyncSession) -> Principal:
    """Pick the principal that will own a freshly created default project."""
    owner_email = settings.DEFAULT_PROJECT_OWNER_EMAIL.strip().lower()

    if owner_email:
        stmt = select(Principal).where(Principal.email == owner_email)
    else:
        stmt = select(Principal).order_by(Principal.created_at.asc(), Principal.id.asc()).limit(1)

    result = await session.execute(stmt)
    owner = result.scalar_one_or_none()

    if owner is None:
        if owner_email:
            raise NoPrincipalAvailable(
                f"Configured default project owner {owner_email!r} does not exist"
            )
        raise NoPrincipalAvailable("No principals exist. Create an account first.")
    return owner


async def get_or_create_default_tenant(session: AsyncSession) -> Project:
    """
    Return the default project, creating it on first use.

    Idempotent: repeated calls return the same row. Two concurrent first
    calls race on the uq_projects_single_default index; the loser rolls
    back and reads the winner's row.
    """
    project = await _find_default_tenant(session)
    if project is not None:
        return project

    owner = await _default_owner(session)

    project = Project(
        name=DEFAULT_PROJECT_NAME,
        domain=settings.DEFAULT_PROJECT_DOMAIN,
        api_key=generate_api_key(),
        description="Default project for feedback submitted without an API key",
        is_active=True,
        is_default=True,
        owner_id=owner.id,
    )

    try:
        session.add(project)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = await _find_default_tenant(session)
        if existing is None:
            raise
        logger.info("Default project was created concurrently; reusing %s", existing.id)
        return existing

    logger.info("Created default project %s owned by principal %s", project.id, owner.id)
    return project
