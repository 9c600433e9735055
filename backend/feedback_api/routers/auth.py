"""
Auth router — principal registration and password sign-in.

POST /api/auth/register — create an account (201)
POST /api/auth/login    — exchange email/password for a Bearer token
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_api.auth.tokens import create_access_token
from feedback_api.core.config import settings
from feedback_api.core.database import get_db_session
from feedback_api.core.errors import FeedbackServiceError
from feedback_api.models.principal import Principal
from feedback_api.routers.errors import to_http
from feedback_api.schemas.auth import (
    LoginRequest,
    PrincipalResponse,
    RegisterRequest,
    TokenResponse,
)
from feedback_api.services.principals import authenticate, register_principal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post(
    "/register",
    response_model=PrincipalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a dashboard account",
)
async def register(payload: RegisterRequest, session: DbSession) -> Principal:
    try:
        return await register_principal(session, payload.email, payload.password, payload.name)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to register principal")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register user",
        )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Sign in with email and password",
)
async def login(payload: LoginRequest, session: DbSession) -> TokenResponse:
    try:
        principal = await authenticate(session, payload.email, payload.password)
    except FeedbackServiceError as exc:
        raise to_http(exc) from exc

    return TokenResponse(
        access_token=create_access_token(principal.id),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
