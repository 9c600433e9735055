"""
Transactional e-mail client for feedback notifications.

Talks to Brevo (preferred) or Resend over their HTTP APIs via httpx.
Provider selection is by configuration:
  BREVO_API_KEY  set → Brevo
  RESEND_API_KEY set → Resend
  neither        → NotificationDispatchError

No retries — one attempt per message. Callers decide what a failure means.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from feedback_api.core.config import settings
from feedback_api.core.errors import NotificationDispatchError

logger = logging.getLogger(__name__)

_BREVO_URL = "https://api.brevo.com/v3/smtp/email"
_RESEND_URL = "https://api.resend.com/emails"
_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str


@dataclass(frozen=True, slots=True)
class SentEmail:
    provider: str
    message_id: str | None


def configured_provider() -> str | None:
    if settings.BREVO_API_KEY:
        return "brevo"
    if settings.RESEND_API_KEY:
        return "resend"
    return None


def _brevo_request(message: EmailMessage) -> tuple[str, dict, dict]:
    payload = {
        "sender": {
            "name": settings.NOTIFICATION_SENDER_NAME,
            "email": settings.NOTIFICATION_SENDER_EMAIL,
        },
        "to": [{"email": message.to}],
        "subject": message.subject,
        "htmlContent": message.html,
        "textContent": message.text,
    }
    headers = {
        "api-key": settings.BREVO_API_KEY,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    return _BREVO_URL, payload, headers


def _resend_request(message: EmailMessage) -> tuple[str, dict, dict]:
    payload = {
        "from": f"{settings.NOTIFICATION_SENDER_NAME} <{settings.NOTIFICATION_SENDER_EMAIL}>",
        "to": [message.to],
        "subject": message.subject,
        "html": message.html,
        "text": message.text,
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    return _RESEND_URL, payload, headers


async def send_email(
    message: EmailMessage,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SentEmail:
    """
    Deliver one e-mail through the configured provider.

    Args:
        message:   Rendered message.
        transport: Optional httpx transport (tests inject a MockTransport).

    Raises:
        NotificationDispatchError: No provider configured, network failure,
            or a non-2xx response.
    """
    provider = configured_provider()
    if provider is None:
        raise NotificationDispatchError("No e-mail provider configured")

    if provider == "brevo":
        url, payload, headers = _brevo_request(message)
    else:
        url, payload, headers = _resend_request(message)

    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        raise NotificationDispatchError(f"{provider} request failed: {exc}") from exc

    if response.status_code >= 300:
        logger.error(
            "%s API error: status=%d body=%s",
            provider,
            response.status_code,
            response.text[:500],
        )
        raise NotificationDispatchError(f"{provider} returned HTTP {response.status_code}")

    # Brevo answers {"messageId": …}, Resend {"id": …}
    try:
        body = response.json()
    except ValueError:
        body = {}
    message_id = (body.get("messageId") or body.get("id")) if isinstance(body, dict) else None

    return SentEmail(provider=provider, message_id=message_id)
