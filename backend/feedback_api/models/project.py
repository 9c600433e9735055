"""
Project model — one tenant collecting feedback through the widget.

A project is the isolation boundary: it owns an API key, its feedback,
and is owned by exactly one principal.

Design notes:
  • api_key is globally unique. It only changes on explicit regeneration,
    which overwrites it in a single UPDATE — the old key stops resolving
    immediately, there is no grace period.
  • is_default marks the fallback tenant used for key-less submissions.
    A partial unique index guarantees at most one such row.
"""

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from feedback_api.core.database import Base

DEFAULT_PROJECT_NAME = "Default Project"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Project(Base):
    """One feedback-collecting tenant."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    domain: Mapped[str] = mapped_column(Text, nullable=False)
    api_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index(
            "uq_projects_single_default",
            "is_default",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    @property
    def key_prefix(self) -> str:
        """First 8 characters of the key — safe to log."""
        return self.api_key[:8]

    def __repr__(self) -> str:
        return (
            f"<Project id={self.id!s:.8} name={self.name!r} "
            f"active={self.is_active}>"
        )
