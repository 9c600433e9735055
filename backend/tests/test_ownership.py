"""Tests for the ownership guard."""

import uuid

import pytest

from feedback_api.core.errors import ForbiddenError, NotFoundError
from feedback_api.services.ownership import assert_ownership, authorized_project_ids


async def test_new_principal_owns_nothing(session, make_principal, make_project):
    alice = await make_principal()
    bob = await make_principal()
    await make_project(bob)

    assert await authorized_project_ids(session, alice.id) == set()


async def test_authorized_ids_are_exactly_the_owned_projects(session, make_principal, make_project):
    alice = await make_principal()
    bob = await make_principal()
    a1 = await make_project(alice, "A1")
    a2 = await make_project(alice, "A2", is_active=False)
    await make_project(bob, "B1")

    assert await authorized_project_ids(session, alice.id) == {a1.id, a2.id}


async def test_assert_ownership_returns_project(session, make_principal, make_project):
    alice = await make_principal()
    project = await make_project(alice)

    owned = await assert_ownership(session, alice.id, project.id)

    assert owned.id == project.id


async def test_assert_ownership_foreign_project(session, make_principal, make_project):
    alice = await make_principal()
    bob = await make_principal()
    project = await make_project(bob)

    with pytest.raises(ForbiddenError):
        await assert_ownership(session, alice.id, project.id)


async def test_assert_ownership_missing_project(session, make_principal):
    alice = await make_principal()

    with pytest.raises(NotFoundError):
        await assert_ownership(session, alice.id, uuid.uuid4())
