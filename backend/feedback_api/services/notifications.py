"""
Notification side-effect dispatcher.

Every stored feedback item triggers one best-effort e-mail to the admin
address. The dispatch must never affect the ingestion result:

  • notify() never raises. Failures are logged and reported as FAILED.
  • dispatch_with_grace() starts notify() as a detached task and waits at
    most the grace period for it. Either the outcome was OBSERVED before
    the deadline, or the task keeps running in the BACKGROUND and the
    caller moves on. The wait exists so failures reach the logs before a
    short-lived worker exits; it is not a delivery guarantee.

State machine per dispatch: PENDING → SENT | FAILED. No retry, no
dead-letter queue.
"""

from __future__ import annotations

import asyncio
import datetime
import enum
import html
import logging
import uuid
from dataclasses import dataclass

from feedback_api.core.config import settings
from feedback_api.core.errors import NotificationDispatchError
from feedback_api.services.email_client import EmailMessage, send_email

logger = logging.getLogger(__name__)

# Strong references to in-flight dispatches. asyncio only keeps weak
# references to tasks, so an unreferenced task could be collected mid-send.
_in_flight: set[asyncio.Task[NotificationResult]] = set()


class DispatchStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class DispatchOutcome(str, enum.Enum):
    OBSERVED = "observed"      # settled within the grace period
    BACKGROUND = "background"  # still running when the grace period elapsed


@dataclass(frozen=True, slots=True)
class NotificationContext:
    """Everything the e-mail needs — no ORM objects cross into the task."""

    feedback_id: uuid.UUID
    project_name: str
    project_domain: str
    message: str
    created_at: datetime.datetime
    submitter_name: str | None = None
    submitter_email: str | None = None
    rating: int | None = None
    dashboard_url: str | None = None


@dataclass(frozen=True, slots=True)
class NotificationResult:
    status: DispatchStatus
    provider: str | None = None
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DispatchReport:
    outcome: DispatchOutcome
    result: NotificationResult | None = None


# ── Rendering ───────────────────────────────────────────────
def render_email(context: NotificationContext, recipient: str) -> EmailMessage:
    """Build the admin notification for one feedback item."""
    rating = f"{context.rating}/5" if context.rating is not None else "not rated"
    submitter = context.submitter_name or "Anonymous"
    if context.submitter_email:
        submitter = f"{submitter} <{context.submitter_email}>"

    lines = [
        f"New feedback for {context.project_name} ({context.project_domain})",
        "",
        f"From:    {submitter}",
        f"Rating:  {rating}",
        f"Received: {context.created_at.isoformat()}",
        "",
        context.message,
    ]
    if context.dashboard_url:
        lines += ["", f"View in dashboard: {context.dashboard_url}"]

    link = (
        f'<p><a href="{html.escape(context.dashboard_url)}">View in dashboard</a></p>'
        if context.dashboard_url
        else ""
    )
    body_html = (
        f"<h2>New feedback for {html.escape(context.project_name)}</h2>"
        f"<p><strong>From:</strong> {html.escape(submitter)}<br>"
        f"<strong>Rating:</strong> {html.escape(rating)}<br>"
        f"<strong>Received:</strong> {html.escape(context.created_at.isoformat())}</p>"
        f"<blockquote>{html.escape(context.message)}</blockquote>"
        f"{link}"
    )

    return EmailMessage(
        to=recipient,
        subject=f"New feedback: {context.project_name}",
        text="\n".join(lines),
        html=body_html,
    )


def dashboard_link(feedback_id: uuid.UUID) -> str | None:
    if not settings.DASHBOARD_URL:
        return None
    return f"{settings.DASHBOARD_URL.rstrip('/')}/dashboard/feedback/{feedback_id}"


# ── Dispatch ────────────────────────────────────────────────
async def notify(context: NotificationContext) -> NotificationResult:
    """
    Send the notification for one feedback item.

    Never raises — a broken notification channel must not fail a
    submission. The returned result is FAILED with an error string
    whenever delivery did not happen.
    """
    recipient = settings.NOTIFICATION_ADMIN_EMAIL

    try:
        if not recipient:
            raise NotificationDispatchError("NOTIFICATION_ADMIN_EMAIL is not configured")
        sent = await send_email(render_email(context, recipient))
    except NotificationDispatchError as exc:
        logger.error("Notification for feedback %s failed: %s", context.feedback_id, exc)
        return NotificationResult(status=DispatchStatus.FAILED, error=str(exc))
    except Exception as exc:
        logger.exception("Unexpected error notifying for feedback %s", context.feedback_id)
        return NotificationResult(status=DispatchStatus.FAILED, error=repr(exc))

    logger.info(
        "Notification for feedback %s sent via %s (%s)",
        context.feedback_id,
        sent.provider,
        sent.message_id,
    )
    return NotificationResult(
        status=DispatchStatus.SENT,
        provider=sent.provider,
        message_id=sent.message_id,
    )


async def dispatch_with_grace(
    context: NotificationContext,
    grace_seconds: float | None = None,
) -> DispatchReport:
    """
    Fire notify() as a detached task and wait up to `grace_seconds`.

    Returns OBSERVED with the result when the task settled in time,
    BACKGROUND otherwise. The task is never cancelled here.
    """
    grace = settings.NOTIFICATION_GRACE_SECONDS if grace_seconds is None else grace_seconds

    task = asyncio.create_task(notify(context), name=f"notify-{context.feedback_id}")
    _in_flight.add(task)
    task.add_done_callback(_in_flight.discard)

    done, _ = await asyncio.wait({task}, timeout=grace)

    if task in done:
        return DispatchReport(outcome=DispatchOutcome.OBSERVED, result=task.result())

    logger.info(
        "Notification for feedback %s still in progress after %.1fs; continuing in background",
        context.feedback_id,
        grace,
    )
    return DispatchReport(outcome=DispatchOutcome.BACKGROUND)


def in_flight_dispatches() -> set[asyncio.Task[NotificationResult]]:
    """Snapshot of dispatches that have not settled yet."""
    return set(_in_flight)


async def drain_in_flight(timeout: float) -> int:
    """Wait up to `timeout` for outstanding dispatches. Returns how many were left unfinished."""
    pending = in_flight_dispatches()
    if not pending:
        return 0
    _, still_pending = await asyncio.wait(pending, timeout=timeout)
    return len(still_pending)
