from __future__ import annotations

from dataclasses import dataclass

import httpx

from job_digest.errors import DeliveryError

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class OutgoingEmail:
    sender: str
    recipients: list[str]
    subject: str
    plain_body: str
    html_body: str


def build_sendgrid_payload(message: OutgoingEmail) -> dict:
    return {
        "personalizations": [{"to": [{"email": address} for address in message.recipients]}],
        "from": {"email": message.sender},
        "subject": message.subject,
        "content": [
            {"type": "text/plain", "value": message.plain_body},
            {"type": "text/html", "value": message.html_body},
        ],
    }


def send_sendgrid_email(
    api_key: str,
    message: OutgoingEmail,
    timeout_seconds: float = 20.0,
    *,
    client: httpx.Client | None = None,
) -> int:
    """Submit ``message`` to SendGrid and return the provider status code.

    Raises DeliveryError for transport failures and non-2xx responses; the
    provider's response body is kept on the exception.
    """
    headers = {"Authorization": f"Bearer {api_key}"}
    payload = build_sendgrid_payload(message)
    try:
        if client is None:
            response = httpx.post(SENDGRID_SEND_URL, json=payload, headers=headers, timeout=timeout_seconds)
        else:
            response = client.post(SENDGRID_SEND_URL, json=payload, headers=headers, timeout=timeout_seconds)
    except httpx.HTTPError as exc:
        raise DeliveryError(f"email delivery failed: {exc}") from exc

    if not response.is_success:
        raise DeliveryError(
            f"email provider returned HTTP {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )
    return response.status_code
