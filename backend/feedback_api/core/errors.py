"""
Domain errors raised by the service layer.

Services raise these; routers and dependencies translate them into
HTTPException with a generic detail. The exception message is for
internal logging and may carry more context than the client sees.
"""


class FeedbackServiceError(Exception):
    """Base class for all domain errors."""


class ValidationError(FeedbackServiceError):
    """Required input is missing or malformed (never retried)."""


class TenantInactiveError(FeedbackServiceError):
    """The API key resolved to a project that has been disabled."""


class UnknownCredentialError(FeedbackServiceError):
    """An API key was presented but matches no project (strict policy only)."""


class NoPrincipalAvailable(FeedbackServiceError):
    """The default project cannot be created because no owner exists."""


class ForbiddenError(FeedbackServiceError):
    """The project exists but belongs to another principal."""


class NotFoundError(FeedbackServiceError):
    """The requested project does not exist."""


class DuplicatePrincipalError(FeedbackServiceError):
    """A principal with this email is already registered."""


class InvalidCredentialsError(FeedbackServiceError):
    """Email/password pair or session token did not check out."""


class NotificationDispatchError(FeedbackServiceError):
    """An outbound notification could not be delivered.

    Only ever raised inside the dispatcher — it is logged there and
    never reaches the ingestion caller.
    """
