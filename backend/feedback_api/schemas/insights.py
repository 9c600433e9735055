"""
Pydantic v2 response schemas for the insights report.

All counts are plain ints. averageRating is a float already rounded
half-up to two decimals by the aggregation engine.
"""

from __future__ import annotations

import uuid

from pydantic import Field

from feedback_api.schemas.common import ApiModel

NO_PROJECT_NAME = "No Project"
UNKNOWN_PROJECT_NAME = "Unknown Project"


class RatingBucket(ApiModel):
    """Number of rated rows carrying one rating value."""

    rating: int
    count: int


class ProjectBucket(ApiModel):
    """Feedback count for one project (project_id None = orphaned rows)."""

    project_id: uuid.UUID | None
    project_name: str
    count: int


class InsightsReport(ApiModel):
    """Aggregate statistics over one principal's scoped feedback."""

    total_feedback: int
    average_rating: float
    rated_feedback_count: int
    rating_distribution: list[RatingBucket]
    feedback_by_project: list[ProjectBucket]
    recent_7_days: int = Field(alias="recent7Days")
    recent_30_days: int = Field(alias="recent30Days")
    total_projects: int
