"""Payments, service agreements and title monitoring over HTTP."""

from __future__ import annotations

from fastapi import status
from homeaudit.core.auth import Role
from homeaudit.infrastructure.db.models import UserRole
from httpx import AsyncClient

from tests.utils import auth_headers, booking_payload, seed_user


async def test_payment_capture_and_listing(
    async_client: AsyncClient, session_factory, payment_processor
) -> None:
    owner = await seed_user(
        session_factory, role=UserRole.HOMEOWNER, email="h@example.com", full_name="Hal"
    )
    headers = auth_headers(owner.id, Role.HOMEOWNER)

    created = await async_client.post(
        "/api/payments",
        json={"source_id": "cnon:ok", "amount": "49.99", "idempotency_key": "order-1"},
        headers=headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["status"] == "completed"
    assert payment_processor.captures[0]["idempotency_key"] == "order-1"

    payment_processor.decline = True
    declined = await async_client.post(
        "/api/payments",
        json={"source_id": "cnon:bad", "amount": "49.99", "idempotency_key": "order-2"},
        headers=headers,
    )
    assert declined.status_code == status.HTTP_502_BAD_GATEWAY

    listing = await async_client.get("/api/payments", headers=headers)
    assert sorted(p["status"] for p in listing.json()) == ["completed", "failed"]

    invalid = await async_client.post(
        "/api/payments",
        json={"source_id": "cnon:ok", "amount": "-1", "idempotency_key": "order-3"},
        headers=headers,
    )
    assert invalid.status_code == status.HTTP_400_BAD_REQUEST


async def test_agreement_send_and_status(
    async_client: AsyncClient, session_factory, signature_provider, sender
) -> None:
    owner = await seed_user(
        session_factory, role=UserRole.HOMEOWNER, email="jane@example.com", full_name="Jane"
    )
    headers = auth_headers(owner.id, Role.HOMEOWNER)
    booked = await async_client.post("/api/appointments", json=booking_payload(), headers=headers)
    assert booked.json()["customer_id"] == owner.id

    sent = await async_client.post(
        "/api/agreements/send", json={"appointment_id": booked.json()["id"]}, headers=headers
    )
    assert sent.status_code == status.HTTP_200_OK
    envelope_id = sent.json()["envelope_id"]
    assert sent.json()["signing_url"] == f"https://sign.test/{envelope_id}"

    pending = await async_client.get(f"/api/agreements/{envelope_id}/status", headers=headers)
    assert pending.json()["completed"] is False

    signature_provider.statuses[envelope_id] = "completed"
    signed = await async_client.get(f"/api/agreements/{envelope_id}/status", headers=headers)
    assert signed.json()["status"] == "signed"
    assert signed.json()["completed"] is True
    assert signed.json()["signed_at"] is not None

    missing = await async_client.get("/api/agreements/env-404/status", headers=headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


async def test_title_monitoring_routes(async_client: AsyncClient, session_factory) -> None:
    owner = await seed_user(
        session_factory, role=UserRole.HOMEOWNER, email="h@example.com", full_name="Hal"
    )
    admin = await seed_user(
        session_factory, role=UserRole.ADMIN, email="a@example.com", full_name="Ada"
    )
    owner_headers = auth_headers(owner.id, Role.HOMEOWNER)
    admin_headers = auth_headers(admin.id, Role.ADMIN)

    subscribed = await async_client.post(
        "/api/title-monitoring/subscribe",
        json={
            "property_address": "12 Elm Street",
            "alert_email": "h@example.com",
            "frequency": "monthly",
            "billing_subscription_id": "sub_1",
        },
        headers=owner_headers,
    )
    assert subscribed.status_code == status.HTTP_201_CREATED
    subscription_id = subscribed.json()["id"]
    assert subscribed.json()["status"] == "active"

    alert = await async_client.post(
        f"/api/title-monitoring/{subscription_id}/alerts",
        json={
            "alert_type": "ownership_transfer",
            "severity": "critical",
            "description": "Deed transfer filed",
        },
        headers=admin_headers,
    )
    assert alert.status_code == status.HTTP_201_CREATED
    alert_id = alert.json()["id"]

    not_admin = await async_client.post(
        f"/api/title-monitoring/{subscription_id}/alerts",
        json={"alert_type": "lien_filed", "severity": "low", "description": "x"},
        headers=owner_headers,
    )
    assert not_admin.status_code == status.HTTP_403_FORBIDDEN

    stats = await async_client.get("/api/title-monitoring/stats", headers=admin_headers)
    assert stats.status_code == status.HTTP_200_OK
    assert stats.json()["unresolved_critical_alerts"] == 1

    resolved = await async_client.post(
        f"/api/title-monitoring/{subscription_id}/alerts/{alert_id}/resolve",
        headers=owner_headers,
    )
    assert resolved.json()["resolved"] is True

    alerts = await async_client.get(
        f"/api/title-monitoring/{subscription_id}/alerts", headers=owner_headers
    )
    assert [a["id"] for a in alerts.json()] == [alert_id]

    cancelled = await async_client.post(
        f"/api/title-monitoring/{subscription_id}/cancel", headers=owner_headers
    )
    assert cancelled.json()["status"] == "cancelled"

    mine = await async_client.get("/api/title-monitoring/subscriptions", headers=owner_headers)
    assert [s["id"] for s in mine.json()] == [subscription_id]
