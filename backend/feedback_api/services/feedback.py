"""Owner-facing feedback listing."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feedback_api.models.feedback import Feedback
from feedback_api.services.ownership import assert_ownership, authorized_project_ids


async def list_feedback(
    session: AsyncSession,
    principal_id: uuid.UUID,
    project_id: uuid.UUID | None = None,
) -> list[Feedback]:
    """
    Feedback visible to `principal_id`, newest first, project joined.

    With `project_id`, ownership is asserted first (NotFoundError /
    ForbiddenError). Without it, every owned project is included.
    """
    if project_id is not None:
        await assert_ownership(session, principal_id, project_id)
        in_scope = Feedback.project_id == project_id
    else:
        in_scope = Feedback.project_id.in_(await authorized_project_ids(session, principal_id))

    stmt = (
        select(Feedback)
        .options(selectinload(Feedback.project))
        .where(in_scope)
        .order_by(Feedback.created_at.desc())
    )
    return list((await session.execute(stmt)).scalars().all())
