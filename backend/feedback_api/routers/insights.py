"""
Insights router — aggregated feedback statistics for the dashboard.

GET /api/business-insights?projectId=…

Scope is always the caller's own projects. With projectId, ownership is
asserted first (404 / 403) and the report covers that project only.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.dependencies import get_current_principal
from feedback_api.core.database import get_db_session
from feedback_api.core.errors import FeedbackServiceError
from feedback_api.models.principal import Principal
from feedback_api.routers.errors import to_http
from feedback_api.schemas.insights import InsightsReport
from feedback_api.services.insights import compute_insights
from feedback_api.services.ownership import assert_ownership, authorized_project_ids

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Insights"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


@router.get(
    "",
    response_model=InsightsReport,
    summary="Feedback statistics for the caller's projects",
    description=(
        "Totals, average rating, rating distribution (1-5), per-project "
        "counts and 7/30-day activity. Computed fresh on every request."
    ),
)
async def get_insights(
    session: DbSession,
    principal: CurrentPrincipal,
    project_id: uuid.UUID | None = Query(
        default=None,
        alias="projectId",
        description="Restrict the report to one owned project.",
    ),
) -> InsightsReport:
    """
    1. Ownership — assert the filter project, collect the owned id set
    2. Aggregate — grouped SQL over that set
    """
    try:
        if project_id is not None:
            await assert_ownership(session, principal.id, project_id)
        scope = await authorized_project_ids(session, principal.id)
        return await compute_insights(session, scope, project_id)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to compute insights")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch business insights",
        )
