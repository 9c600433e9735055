"""
Feedback router — widget ingestion (public) and owner listing (authenticated).

POST /api/feedback
  1. Reads the optional X-API-Key header.
  2. Validates the payload (message required, rating 1..5).
  3. Resolves the tenant — key's project, or the default project.
  4. Persists the row scoped to that project.
  5. Fires the admin notification (bounded wait, never fails the request).
  6. Returns the stored record with 201 Created.

OPTIONS /api/feedback — browser preflights (Origin + Access-Control-Request-Method)
are answered by CORSMiddleware before routing; other OPTIONS requests get an
empty 204 with the same CORS headers. No business logic either way.

GET /api/feedback?projectId=… — the caller's feedback, newest first.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.dependencies import get_current_principal, get_project_api_key
from feedback_api.core.cors import cors_headers
from feedback_api.core.database import get_db_session
from feedback_api.core.errors import (
    FeedbackServiceError,
    NoPrincipalAvailable,
)
from feedback_api.models.feedback import Feedback
from feedback_api.models.principal import Principal
from feedback_api.routers.errors import to_http
from feedback_api.schemas.feedback import FeedbackCreate, FeedbackResponse
from feedback_api.services.feedback import list_feedback
from feedback_api.services.ingestion import ingest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Feedback"])

# Type aliases for cleaner signatures
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
ApiKey = Annotated[str | None, Depends(get_project_api_key)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]

_SAVE_FAILED = HTTPException(
    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    detail="Failed to save feedback",
)


@router.options(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="CORS preflight",
    include_in_schema=False,
)
async def feedback_preflight() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=cors_headers())


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit feedback from the widget",
    description=(
        "Stores one feedback item. The optional X-API-Key header binds it "
        "to a project; without one it lands in the default project."
    ),
)
async def submit_feedback(
    payload: FeedbackCreate,
    session: DbSession,
    api_key: ApiKey,
) -> Feedback:
    """
    Public ingestion endpoint.

    Validation and tenant errors are returned as-is; anything from the
    storage layer becomes a generic 500.
    """
    try:
        return await ingest(session, payload, api_key)
    except NoPrincipalAvailable:
        logger.error("Cannot create the default project: no principal available")
        raise _SAVE_FAILED
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to persist feedback")
        raise _SAVE_FAILED


@router.get(
    "",
    response_model=list[FeedbackResponse],
    summary="List feedback for the caller's projects",
    description="Newest first. projectId narrows to one project the caller owns.",
)
async def get_feedback(
    session: DbSession,
    principal: CurrentPrincipal,
    project_id: uuid.UUID | None = Query(
        default=None,
        alias="projectId",
        description="Only feedback for this project.",
    ),
) -> list[Feedback]:
    try:
        return await list_feedback(session, principal.id, project_id)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to fetch feedback")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch feedback",
        )
