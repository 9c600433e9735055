"""
Feedback ingestion service.

Pipeline for one widget submission:
  1. Validate — message required, rating in 1..5 when given.
  2. Resolve tenant from the API key (or fall back to the default project).
  3. Persist the row bound to that tenant; metadata is stored untouched.
  4. Fire the notification dispatcher and wait at most the grace period.

There is no transaction spanning the key lookup and the insert. A key
regenerated between the two is resolved by whichever read ran first.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.core.config import settings
from feedback_api.core.errors import (
    TenantInactiveError,
    UnknownCredentialError,
    ValidationError,
)
from feedback_api.models.feedback import Feedback
from feedback_api.models.project import Project
from feedback_api.schemas.feedback import FeedbackCreate
from feedback_api.services.notifications import (
    NotificationContext,
    dashboard_link,
    dispatch_with_grace,
)
from feedback_api.services.tenants import get_or_create_default_tenant, resolve_tenant

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_submission(payload: FeedbackCreate) -> None:
    """Raise ValidationError if the submission cannot be stored."""
    if payload.message is None or not payload.message.strip():
        raise ValidationError("Message is required")

    if payload.rating is not None and not MIN_RATING <= payload.rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")


async def resolve_submission_tenant(
    session: AsyncSession,
    api_key: str | None,
) -> Project:
    """
    Pick the project a submission belongs to.

    • Key matches an active project   → that project
    • Key matches an inactive project → TenantInactiveError (no fallback)
    • No key                          → default project
    • Unknown key                     → default project ("degrade" policy)
                                        or UnknownCredentialError ("reject")
    """
    project = await resolve_tenant(session, api_key)

    if project is not None:
        if not project.is_active:
            raise TenantInactiveError(f"project {project.id} is inactive")
        return project

    if api_key and settings.UNKNOWN_API_KEY_POLICY == "reject":
        raise UnknownCredentialError("API key does not match any project")

    return await get_or_create_default_tenant(session)


async def ingest(
    session: AsyncSession,
    payload: FeedbackCreate,
    api_key: str | None,
    *,
    notify: bool | None = None,
) -> Feedback:
    """
    Validate, resolve, persist, notify.

    Returns the stored Feedback with `project` populated.

    Raises:
        ValidationError, TenantInactiveError, UnknownCredentialError,
        NoPrincipalAvailable, SQLAlchemyError (after rollback).
    """

    # ── 1. Validate (before touching storage) ───────────────
    validate_submission(payload)

    # ── 2. Tenant ───────────────────────────────────────────
    project = await resolve_submission_tenant(session, api_key)

    # ── 3. Persist ──────────────────────────────────────────
    feedback = Feedback(
        name=payload.name,
        email=payload.email,
        message=payload.message,
        rating=payload.rating,
        metadata_=payload.metadata,
        project=project,
    )

    try:
        session.add(feedback)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise

    logger.info("Stored feedback %s for project %s", feedback.id, project.id)

    # ── 4. Notify (best effort, bounded wait) ───────────────
    should_notify = settings.NOTIFICATIONS_ENABLED if notify is None else notify
    if should_notify:
        context = NotificationContext(
            feedback_id=feedback.id,
            project_name=project.name,
            project_domain=project.domain,
            message=feedback.message,
            created_at=feedback.created_at,
            submitter_name=feedback.name,
            submitter_email=feedback.email,
            rating=feedback.rating,
            dashboard_url=dashboard_link(feedback.id),
        )
        await dispatch_with_grace(context)

    return feedback
