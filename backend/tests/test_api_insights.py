"""API tests for /api/business-insights."""

import logging
import uuid

from sqlalchemy.exc import OperationalError

from feedback_api.routers import insights as insights_router


async def test_requires_session(client):
    response = await client.get("/api/business-insights")
    assert response.status_code == 401


async def test_report_shape(client, make_principal, make_project, make_feedback, auth_headers):
    alice = await make_principal()
    project = await make_project(alice, "Site")
    for rating in (5, 5, None):
        await make_feedback(project, rating=rating)

    response = await client.get("/api/business-insights", headers=auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert body["totalFeedback"] == 3
    assert body["ratedFeedbackCount"] == 2
    assert body["averageRating"] == 5.0
    assert body["ratingDistribution"] == [
        {"rating": 1, "count": 0},
        {"rating": 2, "count": 0},
        {"rating": 3, "count": 0},
        {"rating": 4, "count": 0},
        {"rating": 5, "count": 2},
    ]
    assert body["feedbackByProject"] == [
        {"projectId": str(project.id), "projectName": "Site", "count": 3},
    ]
    assert body["recent7Days"] == 3
    assert body["recent30Days"] == 3
    assert body["totalProjects"] == 1


async def test_new_principal_sees_empty_report(client, make_principal, make_project, make_feedback, auth_headers):
    alice = await make_principal()
    bob = await make_principal()
    theirs = await make_project(bob)
    await make_feedback(theirs, rating=4)

    response = await client.get("/api/business-insights", headers=auth_headers(alice))

    body = response.json()
    assert body["totalFeedback"] == 0
    assert body["averageRating"] == 0
    assert body["feedbackByProject"] == []
    assert body["totalProjects"] == 0


async def test_filter_by_foreign_project(client, make_principal, make_project, make_feedback, auth_headers):
    alice = await make_principal()
    bob = await make_principal()
    await make_project(alice, "Mine")
    theirs = await make_project(bob, "Bob's secret project")
    await make_feedback(theirs, rating=1)

    response = await client.get(
        "/api/business-insights",
        params={"projectId": str(theirs.id)},
        headers=auth_headers(alice),
    )

    assert response.status_code == 403
    assert "Bob's secret project" not in response.text
    assert str(theirs.id) not in response.text


async def test_filter_by_missing_project(client, make_principal, auth_headers):
    alice = await make_principal()

    response = await client.get(
        "/api/business-insights",
        params={"projectId": str(uuid.uuid4())},
        headers=auth_headers(alice),
    )

    assert response.status_code == 404


async def test_filter_by_own_project(client, make_principal, make_project, make_feedback, auth_headers):
    alice = await make_principal()
    site = await make_project(alice, "Site")
    app = await make_project(alice, "App")
    await make_feedback(site, rating=1)
    await make_feedback(app, rating=3)
    await make_feedback(app, rating=4)

    response = await client.get(
        "/api/business-insights",
        params={"projectId": str(app.id)},
        headers=auth_headers(alice),
    )

    body = response.json()
    assert response.status_code == 200
    assert body["totalFeedback"] == 2
    assert body["averageRating"] == 3.5
    assert body["totalProjects"] == 1
    assert body["feedbackByProject"] == [
        {"projectId": str(app.id), "projectName": "App", "count": 2},
    ]


async def test_deleted_project_drops_out(client, make_principal, make_project, make_feedback, auth_headers):
    alice = await make_principal()
    keep = await make_project(alice, "Keep")
    drop = await make_project(alice, "Drop")
    await make_feedback(keep, rating=2)
    await make_feedback(drop, rating=5)
    await make_feedback(drop, rating=5)

    deleted = await client.delete(f"/api/projects/{drop.id}", headers=auth_headers(alice))
    assert deleted.status_code == 200

    body = (await client.get("/api/business-insights", headers=auth_headers(alice))).json()

    assert body["totalFeedback"] == 1
    assert body["averageRating"] == 2.0
    assert [b["projectName"] for b in body["feedbackByProject"]] == ["Keep"]


async def test_storage_failure_is_a_generic_500(client, make_principal, auth_headers, monkeypatch, caplog):
    alice = await make_principal()

    async def _query_fails(*args, **kwargs):
        raise OperationalError("SELECT count(feedback.id)", {}, Exception("connection reset"))

    monkeypatch.setattr(insights_router, "compute_insights", _query_fails)

    with caplog.at_level(logging.ERROR, logger="feedback_api.routers.insights"):
        response = await client.get("/api/business-insights", headers=auth_headers(alice))

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to fetch business insights"}
    assert "Failed to compute insights" in caplog.text
    assert "connection reset" not in response.text


async def test_malformed_project_id(client, make_principal, auth_headers):
    alice = await make_principal()

    response = await client.get(
        "/api/business-insights",
        params={"projectId": "not-a-uuid"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 422
