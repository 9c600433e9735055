"""
Translation of domain errors into HTTP responses.

Authorization failures carry only "Forbidden" / "Project not found".
"""

from fastapi import HTTPException, status

from feedback_api.core.errors import (
    DuplicatePrincipalError,
    FeedbackServiceError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    TenantInactiveError,
    UnknownCredentialError,
    ValidationError,
)

FORBIDDEN = HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
PROJECT_NOT_FOUND = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")


def to_http(exc: FeedbackServiceError) -> HTTPException:
    """Map a domain error to the HTTPException the client should see."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, TenantInactiveError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Project is inactive")
    if isinstance(exc, UnknownCredentialError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    if isinstance(exc, ForbiddenError):
        return FORBIDDEN
    if isinstance(exc, NotFoundError):
        return PROJECT_NOT_FOUND
    if isinstance(exc, DuplicatePrincipalError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if isinstance(exc, InvalidCredentialsError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
