"""
Pydantic v2 schemas for feedback ingestion and listing.

Separation:
  • FeedbackCreate   — what the WIDGET sends.
  • FeedbackResponse — what the SERVER returns, with the project summary
                       joined in.

`message` is optional at the schema level: a missing message is
a domain validation failure (400 "Message is required"), not a malformed
body (422).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import Field, StrictInt

from feedback_api.schemas.common import ApiModel


# ── Request schema ──────────────────────────────────────────
class FeedbackCreate(ApiModel):
    """
    Payload accepted by POST /api/feedback.

    Unknown keys are ignored — widgets in the wild send extra fields and
    a submission should not fail because of them.
    """

    name: str | None = Field(
        default=None,
        max_length=255,
        examples=["Ada"],
        description="Submitter's display name.",
    )
    email: str | None = Field(
        default=None,
        max_length=320,
        examples=["ada@example.com"],
        description="Submitter's e-mail (not verified).",
    )
    message: str | None = Field(
        default=None,
        examples=["The checkout button is hard to find."],
        description="Feedback text. Required.",
    )
    rating: StrictInt | None = Field(
        default=None,
        examples=[4],
        description="Optional rating, 1 to 5. Booleans and numeric strings are rejected.",
    )
    metadata: dict[str, Any] | None = Field(
        default=None,
        examples=[{"userAgent": "Mozilla/5.0", "url": "https://example.com/pricing"}],
        description="Opaque key-value bag stored as-is.",
    )


# ── Response schemas ────────────────────────────────────────
class ProjectSummary(ApiModel):
    """The few project fields joined onto feedback rows."""

    id: uuid.UUID
    name: str
    domain: str


class FeedbackResponse(ApiModel):
    """Stored feedback row as returned to callers."""

    id: uuid.UUID
    name: str | None
    email: str | None
    message: str
    rating: int | None
    metadata: dict[str, Any] | None = Field(
        default=None,
        # Maps to the ORM attribute `metadata_` (column name is `metadata`)
        validation_alias="metadata_",
    )
    project_id: uuid.UUID | None
    project: ProjectSummary | None = None
    created_at: datetime
