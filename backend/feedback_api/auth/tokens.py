"""JWT session tokens for dashboard principals."""

from __future__ import annotations

import datetime
import uuid

from jose import JWTError, jwt

from feedback_api.core.config import settings
from feedback_api.core.errors import InvalidCredentialsError

_TOKEN_TYPE = "access"


def create_access_token(
    principal_id: uuid.UUID,
    expires_delta: datetime.timedelta | None = None,
) -> str:
    """Issue a signed access token whose subject is the principal id."""
    now = datetime.datetime.now(datetime.timezone.utc)
    expire = now + (expires_delta or datetime.timedelta(minutes=settings.JWT_EXPIRE_MINUTES))
    claims = {
        "sub": str(principal_id),
        "type": _TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Validate a token and return the principal id it was issued for.

    Raises InvalidCredentialsError for bad signatures, expired tokens,
    wrong token types, and malformed subjects alike.
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        raise InvalidCredentialsError("token rejected") from exc

    if claims.get("type") != _TOKEN_TYPE:
        raise InvalidCredentialsError("wrong token type")

    try:
        return uuid.UUID(str(claims.get("sub")))
    except ValueError as exc:
        raise InvalidCredentialsError("malformed subject") from exc
