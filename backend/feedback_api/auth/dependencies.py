"""
FastAPI dependencies for request credentials.

Two credentials exist:
  • Project API key (X-API-Key header) — optional, public, identifies the
    tenant a widget submission belongs to. Resolution happens in the
    ingestion service, not here.
  • Principal session (Authorization: Bearer <jwt>) — required by every
    owner-facing endpoint.

Flow for owner-facing endpoints:
  1. Extract Bearer token
  2. Decode and verify JWT → principal id
  3. Load Principal
  4. Return it to the router

Security:
  • Generic 401 for ALL failure modes (missing, malformed, expired, unknown)
  • Tokens are NEVER logged
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.tokens import decode_access_token
from feedback_api.core.config import settings
from feedback_api.core.database import get_db_session
from feedback_api.core.errors import InvalidCredentialsError
from feedback_api.models.principal import Principal

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

# Generic 401 — same message for all session failures to avoid leaking info
_UNAUTHORIZED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Unauthorized",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    session: AsyncSession = Depends(get_db_session),
) -> Principal:
    """
    FastAPI dependency — resolves a Bearer session token to a Principal.

    Usage in routers:
        CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
    """

    # ── 1. Extract token ────────────────────────────────────
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _UNAUTHORIZED

    # ── 2. Verify ───────────────────────────────────────────
    try:
        principal_id = decode_access_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _UNAUTHORIZED

    # ── 3. Load principal ───────────────────────────────────
    result = await session.execute(select(Principal).where(Principal.id == principal_id))
    principal = result.scalar_one_or_none()

    if principal is None:
        logger.info("Session token references missing principal %s", principal_id)
        raise _UNAUTHORIZED

    return principal


async def get_project_api_key(
    api_key: str | None = Header(default=None, alias=settings.API_KEY_HEADER),
) -> str | None:
    """Optional tenant credential sent by the widget. Empty header counts as absent."""
    return api_key or None
