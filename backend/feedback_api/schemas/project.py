"""
Pydantic v2 schemas for owner-facing project management.

Create/update bodies keep every field optional at the schema level; the
project service owns the "name and domain are required" rule so that it
surfaces as a 400 with a readable message.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from feedback_api.models.project import Project
from feedback_api.schemas.common import ApiModel


class ProjectCreate(ApiModel):
    """Body of POST /api/projects."""

    name: str | None = Field(default=None, max_length=255, examples=["Marketing site"])
    domain: str | None = Field(default=None, max_length=2048, examples=["https://example.com"])
    description: str | None = None
    is_active: bool | None = None


class ProjectUpdate(ApiModel):
    """
    Body of PUT /api/projects/{id}.

    Only fields present in the body are applied (see model_fields_set).
    regenerateApiKey=true replaces the key; the old one stops working at once.
    """

    name: str | None = Field(default=None, max_length=255)
    domain: str | None = Field(default=None, max_length=2048)
    description: str | None = None
    is_active: bool | None = None
    regenerate_api_key: bool = False


class ProjectResponse(ApiModel):
    """A project as its owner sees it, API key included."""

    id: uuid.UUID
    name: str
    domain: str
    api_key: str
    description: str | None
    is_active: bool
    is_default: bool
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    feedback_count: int = 0

    @classmethod
    def from_project(cls, project: Project, feedback_count: int) -> ProjectResponse:
        return cls.model_validate(project).model_copy(update={"feedback_count": feedback_count})


class DeleteResponse(ApiModel):
    message: str
