"""Tests for API key resolution and the lazily created default project."""

import asyncio
import datetime

import pytest
from sqlalchemy import func, select

from feedback_api.core.config import settings
from feedback_api.core.errors import NoPrincipalAvailable
from feedback_api.models.project import DEFAULT_PROJECT_NAME, Project
from feedback_api.services import tenants
from feedback_api.services.tenants import get_or_create_default_tenant, resolve_tenant


async def test_resolve_without_key_returns_none(session):
    assert await resolve_tenant(session, None) is None
    assert await resolve_tenant(session, "") is None


async def test_resolve_matches_exact_key(session, make_principal, make_project):
    owner = await make_principal()
    project = await make_project(owner)

    resolved = await resolve_tenant(session, project.api_key)

    assert resolved is not None
    assert resolved.id == project.id


async def test_resolve_is_case_sensitive(session, make_principal, make_project):
    owner = await make_principal()
    project = await make_project(owner)

    assert await resolve_tenant(session, project.api_key.upper()) is None


async def test_resolve_unknown_key_returns_none(session, make_principal, make_project):
    owner = await make_principal()
    await make_project(owner)

    assert await resolve_tenant(session, "not-a-real-key") is None


async def test_default_tenant_requires_a_principal(session):
    with pytest.raises(NoPrincipalAvailable):
        await get_or_create_default_tenant(session)


async def test_default_tenant_owned_by_earliest_principal(session, make_principal):
    base = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)
    first = await make_principal("first@example.com", created_at=base)
    await make_principal("second@example.com", created_at=base + datetime.timedelta(days=1))

    project = await get_or_create_default_tenant(session)

    assert project.name == DEFAULT_PROJECT_NAME
    assert project.is_default is True
    assert project.is_active is True
    assert project.owner_id == first.id
    assert len(project.api_key) == 32


async def test_default_tenant_owner_from_settings(session, make_principal, monkeypatch):
    base = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)
    await make_principal("first@example.com", created_at=base)
    service = await make_principal("system@example.com", created_at=base + datetime.timedelta(days=1))
    monkeypatch.setattr(settings, "DEFAULT_PROJECT_OWNER_EMAIL", "System@Example.com")

    project = await get_or_create_default_tenant(session)

    assert project.owner_id == service.id


async def test_default_tenant_configured_owner_missing(session, make_principal, monkeypatch):
    await make_principal("first@example.com")
    monkeypatch.setattr(settings, "DEFAULT_PROJECT_OWNER_EMAIL", "ghost@example.com")

    with pytest.raises(NoPrincipalAvailable):
        await get_or_create_default_tenant(session)


async def test_default_tenant_is_idempotent(session, make_principal):
    await make_principal()

    first = await get_or_create_default_tenant(session)
    second = await get_or_create_default_tenant(session)
    third = await get_or_create_default_tenant(session)

    assert first.id == second.id == third.id
    count = await session.scalar(
        select(func.count(Project.id)).where(Project.is_default.is_(True))
    )
    assert count == 1


async def test_user_project_named_default_is_not_the_default_tenant(
    session, make_principal, make_project,
):
    owner = await make_principal()
    impostor = await make_project(owner, name=DEFAULT_PROJECT_NAME)

    project = await get_or_create_default_tenant(session)

    assert project.id != impostor.id
    assert project.is_default is True


async def test_concurrent_first_calls_share_one_default(session_factory, make_principal, monkeypatch):
    await make_principal()
    original_find = tenants._find_default_tenant
    both_looked = asyncio.Barrier(2)
    first_lookup_done = set()

    async def _find_then_wait(session):
        # Both creators see "no default yet" before either inserts
        project = await original_find(session)
        if id(session) not in first_lookup_done:
            first_lookup_done.add(id(session))
            await both_looked.wait()
        return project

    monkeypatch.setattr(tenants, "_find_default_tenant", _find_then_wait)

    async def _resolve_default():
        async with session_factory() as s:
            return await get_or_create_default_tenant(s)

    first, second = await asyncio.wait_for(
        asyncio.gather(_resolve_default(), _resolve_default()),
        timeout=10,
    )

    assert first.id == second.id
    async with session_factory() as s:
        count = await s.scalar(
            select(func.count(Project.id)).where(Project.is_default.is_(True))
        )
    assert count == 1
