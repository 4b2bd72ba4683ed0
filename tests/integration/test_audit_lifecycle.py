"""End-to-end booking → audit → report flow over HTTP."""

from __future__ import annotations

import base64
import re
from decimal import Decimal

import pytest
from fastapi import status
from homeaudit.core.auth import Role
from homeaudit.infrastructure.db.models import UserRole
from httpx import AsyncClient

from tests.utils import auth_headers, booking_payload, days_from_today, seed_user


@pytest.fixture()
async def staff(session_factory) -> dict[str, dict[str, str]]:
    admin = await seed_user(
        session_factory, role=UserRole.ADMIN, email="admin@example.com", full_name="Ada Admin"
    )
    officer = await seed_user(
        session_factory, role=UserRole.OFFICER, email="o1@example.com", full_name="Olga Officer"
    )
    other = await seed_user(
        session_factory, role=UserRole.OFFICER, email="o2@example.com", full_name="Omar Officer"
    )
    return {
        "admin": {"id": admin.id, **auth_headers(admin.id, Role.ADMIN)},
        "officer": {"id": officer.id, **auth_headers(officer.id, Role.OFFICER)},
        "other": {"id": other.id, **auth_headers(other.id, Role.OFFICER)},
    }


def headers(user: dict[str, str]) -> dict[str, str]:
    return {"Authorization": user["Authorization"]}


async def book_and_assign(client: AsyncClient, staff) -> str:
    booked = await client.post("/api/appointments", json=booking_payload())
    assert booked.status_code == status.HTTP_201_CREATED
    appointment_id = booked.json()["id"]
    assigned = await client.patch(
        f"/api/appointments/{appointment_id}/assign-officer",
        json={"officer_id": staff["officer"]["id"]},
        headers=headers(staff["admin"]),
    )
    assert assigned.status_code == status.HTTP_200_OK
    return appointment_id


async def test_full_audit_flow(async_client: AsyncClient, staff, sender) -> None:
    booked = await async_client.post("/api/appointments", json=booking_payload())
    assert booked.status_code == status.HTTP_201_CREATED
    appointment = booked.json()
    assert appointment["status"] == "scheduled"
    assert appointment["customer_id"] is None
    assert appointment["preferred_time"] == "2:00 PM"
    assert len(sender.subjects_for("jane@example.com")) == 1

    appointment_id = appointment["id"]
    assigned = await async_client.patch(
        f"/api/appointments/{appointment_id}/assign-officer",
        json={"officer_id": staff["officer"]["id"]},
        headers=headers(staff["admin"]),
    )
    assert assigned.status_code == status.HTTP_200_OK

    for value in (100, "200", 300.50):
        created = await async_client.post(
            "/api/audit-items",
            json={
                "appointment_id": appointment_id,
                "category": "Electronics",
                "description": f"Item worth {value}",
                "estimated_value": value,
            },
            headers=headers(staff["officer"]),
        )
        assert created.status_code == status.HTTP_201_CREATED

    listing = await async_client.get(
        f"/api/audit-items/{appointment_id}", headers=headers(staff["officer"])
    )
    assert listing.status_code == status.HTTP_200_OK
    body = listing.json()
    assert len(body["items"]) == 3
    assert body["progress"] == {"documented": 3, "target": 15, "percent": 20}
    assert Decimal(body["totals"]["total_value"]) == Decimal("600.50")

    in_progress = await async_client.get(
        f"/api/appointments/{appointment_id}", headers=headers(staff["officer"])
    )
    assert in_progress.json()["status"] == "in_progress"

    generated = await async_client.post(
        f"/api/reports/generate/{appointment_id}", headers=headers(staff["officer"])
    )
    assert generated.status_code == status.HTTP_201_CREATED
    result = generated.json()
    report = result["report"]
    assert report["status"] == "completed"
    assert report["total_items_documented"] == 3
    assert Decimal(report["total_estimated_value"]) == Decimal("600.50")
    assert re.match(r"^RPT-\d{4}-\d{6}$", report["report_number"])
    assert base64.b64decode(result["pdf_base64"]).startswith(b"%PDF")

    completed = await async_client.get(
        f"/api/appointments/{appointment_id}", headers=headers(staff["admin"])
    )
    assert completed.json()["status"] == "completed"
    assert completed.json()["completed_at"] is not None
    assert "Your Home Security Audit Report is Ready" in sender.subjects_for("jane@example.com")

    pdf = await async_client.get(
        f"/api/reports/{appointment_id}/pdf", headers=headers(staff["admin"])
    )
    assert pdf.status_code == status.HTTP_200_OK
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    again = await async_client.post(
        f"/api/reports/generate/{appointment_id}", headers=headers(staff["officer"])
    )
    assert again.status_code == status.HTTP_400_BAD_REQUEST

    late_item = await async_client.post(
        "/api/audit-items",
        json={"appointment_id": appointment_id, "category": "Other", "description": "Late"},
        headers=headers(staff["officer"]),
    )
    assert late_item.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.parametrize(
    "overrides",
    [
        {"preferred_date": days_from_today(10).isoformat()},
        {"preferred_date": days_from_today(0).isoformat()},
        {"preferred_time": "2:30 PM"},
        {"email": "not-an-email"},
        {"phone": None},
    ],
)
async def test_invalid_bookings_are_rejected(async_client: AsyncClient, overrides) -> None:
    response = await async_client.post("/api/appointments", json=booking_payload(**overrides))

    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_booking_survives_email_outage(async_client: AsyncClient, sender) -> None:
    sender.fail = True

    response = await async_client.post("/api/appointments", json=booking_payload())

    assert response.status_code == status.HTTP_201_CREATED


async def test_role_and_assignment_checks(async_client: AsyncClient, staff) -> None:
    appointment_id = await book_and_assign(async_client, staff)
    item = {"appointment_id": appointment_id, "category": "Jewelry", "description": "Ring"}

    homeowner = auth_headers("someone", Role.HOMEOWNER)
    assert (
        await async_client.post("/api/audit-items", json=item, headers=homeowner)
    ).status_code == status.HTTP_403_FORBIDDEN
    assert (
        await async_client.post("/api/audit-items", json=item, headers=headers(staff["other"]))
    ).status_code == status.HTTP_403_FORBIDDEN
    assert (
        await async_client.post("/api/audit-items", json=item)
    ).status_code == status.HTTP_401_UNAUTHORIZED
    assert (
        await async_client.post(
            "/api/audit-items",
            json={**item, "category": "Vehicles"},
            headers=headers(staff["officer"]),
        )
    ).status_code == status.HTTP_400_BAD_REQUEST

    assert (
        await async_client.post(
            f"/api/reports/generate/{appointment_id}", headers=headers(staff["officer"])
        )
    ).status_code == status.HTTP_400_BAD_REQUEST

    assert (
        await async_client.patch(
            f"/api/appointments/{appointment_id}/assign-officer",
            json={"officer_id": staff["other"]["id"]},
            headers=headers(staff["officer"]),
        )
    ).status_code == status.HTTP_403_FORBIDDEN
    assert (
        await async_client.get("/api/appointments/missing", headers=headers(staff["admin"]))
    ).status_code == status.HTTP_404_NOT_FOUND


async def test_status_endpoint(async_client: AsyncClient, staff) -> None:
    appointment_id = await book_and_assign(async_client, staff)
    url = f"/api/appointments/{appointment_id}/status"

    skipped = await async_client.patch(
        url, json={"status": "completed"}, headers=headers(staff["officer"])
    )
    assert skipped.status_code == status.HTTP_400_BAD_REQUEST

    cancelled = await async_client.patch(
        url, json={"status": "cancelled"}, headers=headers(staff["admin"])
    )
    assert cancelled.status_code == status.HTTP_200_OK
    assert cancelled.json()["success"] is True

    listing = await async_client.get("/api/appointments", headers=headers(staff["officer"]))
    assert [a["status"] for a in listing.json()] == ["cancelled"]


async def test_admin_views(async_client: AsyncClient, staff) -> None:
    await book_and_assign(async_client, staff)

    stats = await async_client.get("/api/dashboard/stats", headers=headers(staff["admin"]))
    assert stats.status_code == status.HTTP_200_OK
    assert stats.json()["appointments_today"] == 1
    assert stats.json()["active_officers"] == 2

    officers = await async_client.get("/api/officers", headers=headers(staff["admin"]))
    assert {o["full_name"] for o in officers.json()} == {"Olga Officer", "Omar Officer"}

    forbidden = await async_client.get("/api/dashboard/stats", headers=headers(staff["officer"]))
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
