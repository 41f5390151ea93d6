import json

import httpx
import pytest

from job_digest.errors import DeliveryError
from job_digest.notifier_email import SENDGRID_SEND_URL, OutgoingEmail, send_sendgrid_email

MESSAGE = OutgoingEmail(
    sender="alerts@example.com",
    recipients=["a@example.com", "b@example.com"],
    subject="[Jobs Alert] No matches - 2026-10-19",
    plain_body="plain",
    html_body="<p>html</p>",
)


def test_send_posts_sendgrid_payload_with_bearer_key() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(202)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        status = send_sendgrid_email("SG.key", MESSAGE, 5.0, client=client)

    assert status == 202
    [request] = captured
    assert str(request.url) == SENDGRID_SEND_URL
    assert request.headers["Authorization"] == "Bearer SG.key"
    payload = json.loads(request.content)
    assert payload["personalizations"] == [{"to": [{"email": "a@example.com"}, {"email": "b@example.com"}]}]
    assert payload["from"] == {"email": "alerts@example.com"}
    assert payload["subject"] == MESSAGE.subject
    assert payload["content"] == [
        {"type": "text/plain", "value": "plain"},
        {"type": "text/html", "value": "<p>html</p>"},
    ]


def test_non_success_status_raises_with_provider_body() -> None:
    body = '{"errors":[{"message":"The from address does not match a verified Sender Identity."}]}'
    transport = httpx.MockTransport(lambda request: httpx.Response(403, text=body))

    with httpx.Client(transport=transport) as client:
        with pytest.raises(DeliveryError) as exc_info:
            send_sendgrid_email("SG.key", MESSAGE, client=client)

    assert exc_info.value.status_code == 403
    assert exc_info.value.body == body


def test_transport_failure_is_a_delivery_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(DeliveryError, match="timed out"):
            send_sendgrid_email("SG.key", MESSAGE, client=client)
