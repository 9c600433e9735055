"""
Owner-facing project management.

Every function takes the acting principal's id and goes through the
ownership guard before reading or writing a specific project. Listing is
scoped by owner_id in the query itself.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.credentials import generate_api_key
from feedback_api.core.errors import ValidationError
from feedback_api.models.feedback import Feedback
from feedback_api.models.project import Project
from feedback_api.schemas.project import ProjectCreate, ProjectUpdate
from feedback_api.services.ownership import assert_ownership

logger = logging.getLogger(__name__)


async def feedback_counts(
    session: AsyncSession,
    project_ids: list[uuid.UUID],
) -> dict[uuid.UUID, int]:
    """Feedback rows per project, in one grouped query."""
    if not project_ids:
        return {}
    stmt = (
        select(Feedback.project_id, func.count(Feedback.id).label("n"))
        .where(Feedback.project_id.in_(project_ids))
        .group_by(Feedback.project_id)
    )
    return {row.project_id: row.n for row in (await session.execute(stmt)).all()}


async def list_projects(
    session: AsyncSession,
    principal_id: uuid.UUID,
) -> list[tuple[Project, int]]:
    """The principal's projects, newest first, with feedback counts."""
    stmt = (
        select(Project)
        .where(Project.owner_id == principal_id)
        .order_by(Project.created_at.desc())
    )
    projects = list((await session.execute(stmt)).scalars().all())
    counts = await feedback_counts(session, [p.id for p in projects])
    return [(project, counts.get(project.id, 0)) for project in projects]


async def get_project(
    session: AsyncSession,
    principal_id: uuid.UUID,
    project_id: uuid.UUID,
) -> tuple[Project, int]:
    project = await assert_ownership(session, principal_id, project_id)
    counts = await feedback_counts(session, [project.id])
    return project, counts.get(project.id, 0)


async def create_project(
    session: AsyncSession,
    principal_id: uuid.UUID,
    payload: ProjectCreate,
) -> Project:
    """Create a project owned by `principal_id` with a fresh API key."""
    name = (payload.name or "").strip()
    domain = (payload.domain or "").strip()
    if not name or not domain:
        raise ValidationError("Name and domain are required")

    project = Project(
        name=name,
        domain=domain,
        description=(payload.description or "").strip() or None,
        api_key=generate_api_key(),
        is_active=True if payload.is_active is None else payload.is_active,
        owner_id=principal_id,
    )

    try:
        session.add(project)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise

    logger.info("Principal %s created project %s", principal_id, project.id)
    return project


async def update_project(
    session: AsyncSession,
    principal_id: uuid.UUID,
    project_id: uuid.UUID,
    payload: ProjectUpdate,
) -> tuple[Project, int]:
    """
    Apply a partial update. Only fields present in the body are touched.

    regenerate_api_key swaps the key inside the same UPDATE statement, so
    there is no moment where both the old and new key resolve.
    """
    project = await assert_ownership(session, principal_id, project_id)
    sent = payload.model_fields_set
    changes: dict[str, object] = {}

    if "name" in sent and payload.name is not None:
        if not payload.name.strip():
            raise ValidationError("Name cannot be empty")
        changes["name"] = payload.name.strip()
    if "domain" in sent and payload.domain is not None:
        if not payload.domain.strip():
            raise ValidationError("Domain cannot be empty")
        changes["domain"] = payload.domain.strip()
    if "description" in sent:
        changes["description"] = (payload.description or "").strip() or None
    if "is_active" in sent and payload.is_active is not None:
        changes["is_active"] = payload.is_active
    if payload.regenerate_api_key:
        changes["api_key"] = generate_api_key()

    if changes:
        try:
            for field, value in changes.items():
                setattr(project, field, value)
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise
        await session.refresh(project)

        if "api_key" in changes:
            logger.info("API key regenerated for project %s", project.id)

    counts = await feedback_counts(session, [project.id])
    return project, counts.get(project.id, 0)


async def delete_project(
    session: AsyncSession,
    principal_id: uuid.UUID,
    project_id: uuid.UUID,
) -> None:
    """
    Hard-delete a project.

    Its feedback is orphaned (project_id nulled) in the same transaction,
    which takes it out of every principal's scope. This is done explicitly
    rather than relying on the FK's ON DELETE SET NULL so the outcome does
    not depend on the backend enforcing foreign keys.
    """
    await assert_ownership(session, principal_id, project_id)

    try:
        await session.execute(
            update(Feedback)
            .where(Feedback.project_id == project_id)
            .values(project_id=None)
        )
        await session.execute(delete(Project).where(Project.id == project_id))
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise

    logger.info("Principal %s deleted project %s", principal_id, project_id)
