from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest
from homeaudit.domain.errors import DependencyError
from homeaudit.domain.services.notifications import EmailMessage, ResendNotificationSender
from homeaudit.domain.services.payments import SquarePaymentProcessor
from homeaudit.libs.docusign_client import DocuSignClient
from homeaudit.libs.resend_client import ResendAPIError, ResendClient
from homeaudit.libs.square_client import SquareAPIError, SquareClient, to_cents


def test_to_cents_rounds_half_up() -> None:
    assert to_cents(Decimal("49.99")) == 4999
    assert to_cents(Decimal("10.005")) == 1001


async def test_resend_posts_email() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "email-1"})

    client = ResendClient(
        api_key="re_test", base_url="https://resend.test", transport=httpx.MockTransport(handler)
    )
    response = await client.send_email(
        from_email="from@example.com", to_emails=["jane@example.com"], subject="Hi", html="<p>x</p>"
    )

    assert response.id == "email-1"
    assert seen[0].url == "https://resend.test/emails"
    assert seen[0].headers["Authorization"] == "Bearer re_test"
    assert json.loads(seen[0].content)["to"] == ["jane@example.com"]


async def test_resend_sender_forwards_tags_and_idempotency_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "email-2"})

    client = ResendClient(
        api_key="re_test", base_url="https://resend.test", transport=httpx.MockTransport(handler)
    )
    sender = ResendNotificationSender(client=client, from_email="f@example.com")

    message_id = await sender.send(
        EmailMessage(
            to="jane@example.com",
            subject="Reminder",
            html="<p>x</p>",
            text="x",
            tags={"kind": "reminder_24_hour", "appointment_id": "appt 1"},
            reply_to="support@example.com",
            idempotency_key="reminder_24_hour/appt-1",
        )
    )

    body = json.loads(seen[0].content)
    assert message_id == "email-2"
    assert seen[0].headers["Idempotency-Key"] == "reminder_24_hour/appt-1"
    assert body["reply_to"] == "support@example.com"
    assert body["tags"] == [
        {"name": "kind", "value": "reminder_24_hour"},
        {"name": "appointment_id", "value": "appt_1"},
    ]


async def test_resend_error_becomes_dependency_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(422, text="bad sender"))
    client = ResendClient(api_key="re_test", base_url="https://resend.test", transport=transport)

    with pytest.raises(ResendAPIError):
        await client.send_email(
            from_email="f@example.com", to_emails=["t@example.com"], subject="s", html="h"
        )

    sender = ResendNotificationSender(client=client, from_email="f@example.com")
    with pytest.raises(DependencyError):
        await sender.send(EmailMessage(to="t@example.com", subject="s", html="h", text="t"))


async def test_square_payment_success_and_decline() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["source_id"] == "cnon:declined":
            return httpx.Response(
                402, json={"errors": [{"code": "CARD_DECLINED", "detail": "Card declined"}]}
            )
        return httpx.Response(
            200,
            json={
                "payment": {
                    "id": "sq-pay-1",
                    "status": "COMPLETED",
                    "amount_money": body["amount_money"],
                    "source_type": "CARD",
                }
            },
        )

    client = SquareClient(
        access_token="sq_test",
        location_id="L1",
        base_url="https://square.test",
        transport=httpx.MockTransport(handler),
    )
    payment = await client.create_payment(
        source_id="cnon:ok", amount=Decimal("49.99"), currency="USD", idempotency_key="k1"
    )
    assert (payment.id, payment.amount_cents, payment.source_type) == ("sq-pay-1", 4999, "CARD")

    with pytest.raises(SquareAPIError, match="Card declined"):
        await client.create_payment(
            source_id="cnon:declined", amount=Decimal("1"), currency="USD", idempotency_key="k2"
        )

    processor = SquarePaymentProcessor(client=client)
    result = await processor.capture(
        source_id="cnon:ok", amount=Decimal("49.99"), currency="USD", idempotency_key="k3"
    )
    assert result.payment_method == "card"
    with pytest.raises(DependencyError):
        await processor.capture(
            source_id="cnon:declined", amount=Decimal("1"), currency="USD", idempotency_key="k4"
        )


async def test_docusign_envelope_and_signing_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/envelopes") and request.method == "POST":
            return httpx.Response(201, json={"envelopeId": "env-9", "status": "sent"})
        if path.endswith("/views/recipient"):
            return httpx.Response(201, json={"url": "https://sign.test/env-9"})
        return httpx.Response(200, json={"status": "completed"})

    client = DocuSignClient(
        access_token="ds_test",
        account_id="acct-1",
        base_url="https://docusign.test/restapi",
        transport=httpx.MockTransport(handler),
    )

    summary = await client.create_envelope(
        signer_name="Jane Doe",
        signer_email="jane@example.com",
        client_user_id="appt-1",
        document_name="Agreement",
        document_html="<p>terms</p>",
        email_subject="Please sign",
    )
    url = await client.create_recipient_view(
        summary.envelope_id,
        signer_name="Jane Doe",
        signer_email="jane@example.com",
        client_user_id="appt-1",
        return_url="https://app.test/done",
    )
    status = await client.get_envelope("env-9")

    assert summary.envelope_id == "env-9"
    assert url == "https://sign.test/env-9"
    assert status.status == "completed"
