"""
Insights aggregation engine.

Computes the dashboard report over a principal's scoped feedback. All
aggregation happens in SQL with GROUP BY — three statements in total,
whatever the number of rating buckets or projects:

  1. totals     — count, rated count, average rating, 7/30-day windows
  2. ratings    — count per rating value (padded to 1..5 in Python)
  3. projects   — count per project id, outer-joined to project names

Nothing is cached; each call reads the current state of the table and
uses wall-clock "now" for the recency windows.

Scope is supplied by the caller (see services.ownership). This module
never widens it: an empty scope yields an all-zero report.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.core.errors import ForbiddenError
from feedback_api.models.feedback import Feedback, Orphaned, link_for
from feedback_api.models.project import Project
from feedback_api.schemas.insights import (
    NO_PROJECT_NAME,
    UNKNOWN_PROJECT_NAME,
    InsightsReport,
    ProjectBucket,
    RatingBucket,
)

logger = logging.getLogger(__name__)

RATING_VALUES = range(1, 6)
RECENT_WINDOWS_DAYS = (7, 30)
_TWO_PLACES = Decimal("0.01")


def round_rating(value: float | Decimal | None) -> float:
    """Half-up rounding to two decimals; None (nothing rated) → 0."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def bucket_name(project_id: uuid.UUID | None, project_name: str | None) -> str:
    """
    Display name for a feedback_by_project bucket.

    Scoped rows always carry the id of a project that was just read, so the
    two fallbacks only fire when a project is deleted while the report is
    being computed: its rows are then orphaned ("No Project") or the name
    join comes back empty ("Unknown Project").
    """
    if isinstance(link_for(project_id), Orphaned):
        return NO_PROJECT_NAME
    return project_name or UNKNOWN_PROJECT_NAME


async def compute_insights(
    session: AsyncSession,
    scope_project_ids: set[uuid.UUID],
    filter_project_id: uuid.UUID | None = None,
    *,
    now: datetime.datetime | None = None,
) -> InsightsReport:
    """
    Build the insights report.

    Args:
        session:           Async DB session.
        scope_project_ids: Projects the requesting principal owns.
        filter_project_id: Narrow to one project. Must be in scope.
        now:               Override for the recency windows (tests).

    Raises:
        ForbiddenError: filter_project_id is outside the scope.
    """
    if filter_project_id is not None and filter_project_id not in scope_project_ids:
        raise ForbiddenError(f"project {filter_project_id} is outside the requested scope")

    if filter_project_id is not None:
        in_scope = Feedback.project_id == filter_project_id
    else:
        in_scope = Feedback.project_id.in_(scope_project_ids)

    now = now or datetime.datetime.now(datetime.timezone.utc)
    since_7, since_30 = (now - datetime.timedelta(days=d) for d in RECENT_WINDOWS_DAYS)

    # ── 1. Totals ───────────────────────────────────────────
    totals_stmt = (
        select(
            func.count(Feedback.id).label("total"),
            func.count(Feedback.rating).label("rated"),
            func.avg(Feedback.rating).label("avg_rating"),
            func.count(case((Feedback.created_at >= since_7, 1))).label("recent_7"),
            func.count(case((Feedback.created_at >= since_30, 1))).label("recent_30"),
        )
        .select_from(Feedback)
        .where(in_scope)
    )
    totals = (await session.execute(totals_stmt)).one()

    # ── 2. Rating distribution ──────────────────────────────
    ratings_stmt = (
        select(Feedback.rating, func.count(Feedback.id).label("n"))
        .where(in_scope, Feedback.rating.is_not(None))
        .group_by(Feedback.rating)
    )
    per_rating = {row.rating: row.n for row in (await session.execute(ratings_stmt)).all()}
    rating_distribution = [
        RatingBucket(rating=value, count=per_rating.get(value, 0)) for value in RATING_VALUES
    ]

    # ── 3. Per-project breakdown ────────────────────────────
    if filter_project_id is not None:
        name = await session.scalar(select(Project.name).where(Project.id == filter_project_id))
        feedback_by_project = [
            ProjectBucket(
                project_id=filter_project_id,
                project_name=bucket_name(filter_project_id, name),
                count=totals.total,
            )
        ]
    else:
        count_col = func.count(Feedback.id).label("n")
        projects_stmt = (
            select(Feedback.project_id, Project.name, count_col)
            .select_from(Feedback)
            .outerjoin(Project, Project.id == Feedback.project_id)
            .where(in_scope)
            .group_by(Feedback.project_id, Project.name)
            .order_by(count_col.desc())
        )
        feedback_by_project = [
            ProjectBucket(
                project_id=row.project_id,
                project_name=bucket_name(row.project_id, row.name),
                count=row.n,
            )
            for row in (await session.execute(projects_stmt)).all()
        ]

    # ── 4. Active projects ──────────────────────────────────
    if filter_project_id is not None:
        total_projects = 1
    else:
        total_projects = await session.scalar(
            select(func.count(Project.id)).where(
                Project.id.in_(scope_project_ids),
                Project.is_active.is_(True),
            )
        ) or 0

    report = InsightsReport(
        total_feedback=totals.total,
        average_rating=round_rating(totals.avg_rating),
        rated_feedback_count=totals.rated,
        rating_distribution=rating_distribution,
        feedback_by_project=feedback_by_project,
        recent_7_days=totals.recent_7,
        recent_30_days=totals.recent_30,
        total_projects=total_projects,
    )
    logger.debug(
        "Insights over %d project(s): %d feedback rows",
        1 if filter_project_id else len(scope_project_ids),
        report.total_feedback,
    )
    return report
