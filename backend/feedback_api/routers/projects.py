"""
Projects router — owner-facing CRUD.

All endpoints require a principal session. Single-project endpoints go
through the ownership guard: missing project → 404, someone else's → 403.

Endpoints:
  GET    /api/projects        — caller's projects, newest first
  POST   /api/projects        — create (fresh API key)
  GET    /api/projects/{id}   — one project with feedback count
  PUT    /api/projects/{id}   — partial update, optional key regeneration
  DELETE /api/projects/{id}   — hard delete; its feedback is orphaned
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.dependencies import get_current_principal
from feedback_api.core.database import get_db_session
from feedback_api.core.errors import FeedbackServiceError
from feedback_api.models.principal import Principal
from feedback_api.routers.errors import to_http
from feedback_api.schemas.project import (
    DeleteResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
)
from feedback_api.services import projects as project_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projects"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def _storage_error(action: str) -> HTTPException:
    logger.exception("Failed to %s project", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action} project",
    )


@router.get(
    "",
    response_model=list[ProjectResponse],
    summary="List the caller's projects",
)
async def list_projects(session: DbSession, principal: CurrentPrincipal) -> list[ProjectResponse]:
    try:
        rows = await project_service.list_projects(session, principal.id)
    except SQLAlchemyError:
        raise _storage_error("fetch")
    return [ProjectResponse.from_project(project, count) for project, count in rows]


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    description="Name and domain are required. A new API key is generated.",
)
async def create_project(
    payload: ProjectCreate,
    session: DbSession,
    principal: CurrentPrincipal,
) -> ProjectResponse:
    try:
        project = await project_service.create_project(session, principal.id, payload)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        raise _storage_error("create")
    return ProjectResponse.from_project(project, 0)


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Fetch one project",
)
async def get_project(
    project_id: uuid.UUID,
    session: DbSession,
    principal: CurrentPrincipal,
) -> ProjectResponse:
    try:
        project, count = await project_service.get_project(session, principal.id, project_id)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        raise _storage_error("fetch")
    return ProjectResponse.from_project(project, count)


@router.put(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Update a project",
    description=(
        "Only the fields sent are changed. regenerateApiKey=true replaces the "
        "API key; the old key stops resolving immediately."
    ),
)
async def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdate,
    session: DbSession,
    principal: CurrentPrincipal,
) -> ProjectResponse:
    try:
        project, count = await project_service.update_project(
            session, principal.id, project_id, payload,
        )
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        raise _storage_error("update")
    return ProjectResponse.from_project(project, count)


@router.delete(
    "/{project_id}",
    response_model=DeleteResponse,
    summary="Delete a project",
)
async def delete_project(
    project_id: uuid.UUID,
    session: DbSession,
    principal: CurrentPrincipal,
) -> DeleteResponse:
    try:
        await project_service.delete_project(session, principal.id, project_id)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        raise _storage_error("delete")
    return DeleteResponse(message="Project deleted successfully")
