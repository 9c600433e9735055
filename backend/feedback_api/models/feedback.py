"""
SQLAlchemy model for the `feedback` table.

Each row is one end-user submission from the widget. Rows are immutable
once written; they disappear from owner views only when their project is
deleted, at which point project_id is nulled and the row is orphaned.

Design notes:
  • metadata_ is JSON (JSONB on Postgres) and stored opaquely — the widget
    decides what goes in (user agent, page URL, …).
  • Tenant linkage is exposed as a tagged value (Linked | Orphaned) so
    callers handle the "no project" case explicitly instead of
    null-checking project_id.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from feedback_api.core.database import Base
from feedback_api.models.project import Project


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# ── Tenant linkage ──────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Linked:
    """Feedback bound to a live project."""

    project_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class Orphaned:
    """Feedback whose project was deleted (or never assigned)."""


ProjectLink = Linked | Orphaned


def link_for(project_id: uuid.UUID | None) -> ProjectLink:
    """Map a nullable foreign key onto the tagged linkage."""
    return Orphaned() if project_id is None else Linked(project_id)


class Feedback(Base):
    """One widget submission."""

    __tablename__ = "feedback"

    # ── Primary key ─────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Submitter (all optional) ────────────────────────────
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # ── Content ─────────────────────────────────────────────
    message: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Column named `metadata_` because `metadata` is reserved on
    # declarative classes; maps to DB column `metadata`.
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    # ── Tenant ──────────────────────────────────────────────
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    project: Mapped[Project | None] = relationship("Project", lazy="raise")

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_feedback_rating_range",
        ),
        Index("ix_feedback_project_id", "project_id"),
        Index("ix_feedback_created_at", "created_at"),
    )

    @property
    def link(self) -> ProjectLink:
        return link_for(self.project_id)

    def __repr__(self) -> str:
        return (
            f"<Feedback id={self.id!s:.8} project={self.project_id!s:.8} "
            f"rating={self.rating}>"
        )
