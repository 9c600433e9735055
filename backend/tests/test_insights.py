"""Tests for the insights aggregation engine."""

import datetime
import uuid
from decimal import Decimal

import pytest

from feedback_api.core.errors import ForbiddenError
from feedback_api.schemas.feedback import FeedbackCreate
from feedback_api.services.ingestion import ingest
from feedback_api.schemas.insights import NO_PROJECT_NAME, UNKNOWN_PROJECT_NAME
from feedback_api.services.insights import bucket_name, compute_insights, round_rating
from feedback_api.services.ownership import authorized_project_ids
from feedback_api.services.projects import delete_project

NOW = datetime.datetime(2026, 6, 15, 12, 0, tzinfo=datetime.timezone.utc)


def _distribution(report) -> dict[int, int]:
    return {bucket.rating: bucket.count for bucket in report.rating_distribution}


# ── Rounding ────────────────────────────────────────────────
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, 0.0),
        (5, 5.0),
        (Decimal("3.333333"), 3.33),
        (Decimal("3.335"), 3.34),
        (Decimal("2.125"), 2.13),
        (4.666666, 4.67),
    ],
)
def test_round_rating(value, expected):
    assert round_rating(value) == expected


def test_bucket_name_fallbacks():
    project_id = uuid.uuid4()

    assert bucket_name(project_id, "Site") == "Site"
    assert bucket_name(project_id, None) == UNKNOWN_PROJECT_NAME
    assert bucket_name(None, None) == NO_PROJECT_NAME
    assert bucket_name(None, "Stale name") == NO_PROJECT_NAME


# ── Report contents ─────────────────────────────────────────
async def test_empty_scope_is_all_zero(session):
    report = await compute_insights(session, set(), now=NOW)

    assert report.total_feedback == 0
    assert report.average_rating == 0
    assert report.rated_feedback_count == 0
    assert report.feedback_by_project == []
    assert report.total_projects == 0
    assert _distribution(report) == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}


async def test_default_tenant_ratings_scenario(session, make_principal):
    owner = await make_principal()
    for rating in (5, 5, None):
        await ingest(session, FeedbackCreate(message="hi", rating=rating), None)

    scope = await authorized_project_ids(session, owner.id)
    report = await compute_insights(session, scope)

    assert report.total_feedback == 3
    assert report.rated_feedback_count == 2
    assert report.average_rating == 5.00
    assert len(report.rating_distribution) == 5
    assert _distribution(report) == {1: 0, 2: 0, 3: 0, 4: 0, 5: 2}
    assert report.recent_7_days == 3
    assert report.recent_30_days == 3


async def test_distribution_sums_to_rated_count(session, make_principal, make_project, make_feedback):
    owner = await make_principal()
    project = await make_project(owner)
    for rating in (1, 2, 2, 4, None, None, 5):
        await make_feedback(project, rating=rating)

    report = await compute_insights(session, {project.id}, now=NOW)

    assert [b.rating for b in report.rating_distribution] == [1, 2, 3, 4, 5]
    assert sum(b.count for b in report.rating_distribution) == report.rated_feedback_count == 5
    assert report.total_feedback == 7
    assert report.average_rating == 2.8


async def test_average_rounds_half_up(session, make_principal, make_project, make_feedback):
    owner = await make_principal()
    project = await make_project(owner)
    for rating in (4, 4, 5):
        await make_feedback(project, rating=rating)

    report = await compute_insights(session, {project.id}, now=NOW)

    assert report.average_rating == 4.33


async def test_recency_windows(session, make_principal, make_project, make_feedback):
    owner = await make_principal()
    project = await make_project(owner)
    for days_ago in (0, 3, 6.9, 10, 29, 45):
        await make_feedback(project, created_at=NOW - datetime.timedelta(days=days_ago))

    report = await compute_insights(session, {project.id}, now=NOW)

    assert report.total_feedback == 6
    assert report.recent_7_days == 3
    assert report.recent_30_days == 5


async def test_per_project_breakdown(session, make_principal, make_project, make_feedback):
    owner = await make_principal()
    site = await make_project(owner, "Site")
    app = await make_project(owner, "App")
    for _ in range(3):
        await make_feedback(site)
    await make_feedback(app)

    report = await compute_insights(session, {site.id, app.id}, now=NOW)

    buckets = {b.project_id: (b.project_name, b.count) for b in report.feedback_by_project}
    assert buckets == {site.id: ("Site", 3), app.id: ("App", 1)}
    assert report.feedback_by_project[0].project_id == site.id


async def test_total_projects_counts_active_only(session, make_principal, make_project):
    owner = await make_principal()
    active = await make_project(owner, "Active")
    paused = await make_project(owner, "Paused", is_active=False)

    report = await compute_insights(session, {active.id, paused.id}, now=NOW)

    assert report.total_projects == 1


# ── Filtering and isolation ─────────────────────────────────
async def test_filter_collapses_to_one_project(session, make_principal, make_project, make_feedback):
    owner = await make_principal()
    site = await make_project(owner, "Site")
    app = await make_project(owner, "App")
    await make_feedback(site, rating=2)
    await make_feedback(app, rating=4)
    await make_feedback(app)

    report = await compute_insights(session, {site.id, app.id}, app.id, now=NOW)

    assert report.total_feedback == 2
    assert report.average_rating == 4.0
    assert report.total_projects == 1
    assert len(report.feedback_by_project) == 1
    assert report.feedback_by_project[0].project_id == app.id
    assert report.feedback_by_project[0].project_name == "App"
    assert report.feedback_by_project[0].count == 2


async def test_filter_outside_scope_is_forbidden(session, make_principal, make_project):
    alice = await make_principal()
    bob = await make_principal()
    mine = await make_project(alice)
    theirs = await make_project(bob)

    with pytest.raises(ForbiddenError):
        await compute_insights(session, {mine.id}, theirs.id, now=NOW)


async def test_other_principals_feedback_never_counted(
    session, make_principal, make_project, make_feedback,
):
    alice = await make_principal()
    bob = await make_principal()
    mine = await make_project(alice, "Mine")
    theirs = await make_project(bob, "Theirs")
    await make_feedback(mine, rating=1)
    for _ in range(4):
        await make_feedback(theirs, rating=5)

    scope = await authorized_project_ids(session, alice.id)
    report = await compute_insights(session, scope, now=NOW)

    assert report.total_feedback == 1
    assert report.average_rating == 1.0
    assert {b.project_id for b in report.feedback_by_project} == {mine.id}
    assert all(b.project_name != "Theirs" for b in report.feedback_by_project)


async def test_deleted_project_excluded(session, make_principal, make_project, make_feedback):
    owner = await make_principal()
    keep = await make_project(owner, "Keep")
    drop = await make_project(owner, "Drop")
    await make_feedback(keep, rating=3)
    for _ in range(2):
        await make_feedback(drop, rating=5)

    await delete_project(session, owner.id, drop.id)

    scope = await authorized_project_ids(session, owner.id)
    report = await compute_insights(session, scope, now=NOW)

    assert scope == {keep.id}
    assert report.total_feedback == 1
    assert report.average_rating == 3.0
    assert [b.project_id for b in report.feedback_by_project] == [keep.id]
