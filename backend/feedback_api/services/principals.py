"""Principal registration and password sign-in."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.credentials import hash_password, verify_password
from feedback_api.core.errors import (
    DuplicatePrincipalError,
    InvalidCredentialsError,
    ValidationError,
)
from feedback_api.models.principal import Principal

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_principal_by_email(session: AsyncSession, email: str) -> Principal | None:
    result = await session.execute(
        select(Principal).where(Principal.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def register_principal(
    session: AsyncSession,
    email: str,
    password: str,
    name: str | None = None,
) -> Principal:
    """
    Create an account.

    Raises:
        ValidationError:         password shorter than 8 characters.
        DuplicatePrincipalError: email already registered.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    email = normalize_email(email)
    if await get_principal_by_email(session, email) is not None:
        raise DuplicatePrincipalError(email)

    principal = Principal(
        email=email,
        password_hash=hash_password(password),
        name=(name or "").strip() or None,
    )

    try:
        session.add(principal)
        await session.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        await session.rollback()
        raise DuplicatePrincipalError(email) from exc

    logger.info("Registered principal %s", principal.id)
    return principal


async def authenticate(session: AsyncSession, email: str, password: str) -> Principal:
    """Return the principal for a valid email/password pair."""
    principal = await get_principal_by_email(session, email)

    if principal is None or not principal.password_hash:
        raise InvalidCredentialsError("unknown email or no password set")

    if not verify_password(password, principal.password_hash):
        raise InvalidCredentialsError("password mismatch")

    return principal
