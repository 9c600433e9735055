"""
Ownership authorization guard.

Every owner-facing read or write is scoped through here first. There is
no unscoped query path reachable from an authenticated endpoint: callers
either get the set of project ids the principal owns, or an assertion that
one specific project is theirs.

An empty id set means "owns nothing" — never "unrestricted".
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.core.errors import ForbiddenError, NotFoundError
from feedback_api.models.project import Project

logger = logging.getLogger(__name__)


async def authorized_project_ids(
    session: AsyncSession,
    principal_id: uuid.UUID,
) -> set[uuid.UUID]:
    """Ids of every project owned by `principal_id` (active or not)."""
    stmt = select(Project.id).where(Project.owner_id == principal_id)
    result = await session.execute(stmt)
    return set(result.scalars().all())


async def assert_ownership(
    session: AsyncSession,
    principal_id: uuid.UUID,
    project_id: uuid.UUID,
) -> Project:
    """
    Return the project if `principal_id` owns it.

    Raises:
        NotFoundError:  no project with that id exists.
        ForbiddenError: the project belongs to someone else.
    """
    result = await session.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()

    if project is None:
        logger.debug("Principal %s asked for missing project %s", principal_id, project_id)
        raise NotFoundError(f"project {project_id} does not exist")

    if project.owner_id != principal_id:
        logger.debug(
            "Principal %s denied access to project %s owned by %s",
            principal_id,
            project_id,
            project.owner_id,
        )
        raise ForbiddenError(f"project {project_id} is not owned by {principal_id}")

    return project
