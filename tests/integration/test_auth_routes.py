"""Integration tests for authentication endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.fixture
def test_user() -> dict:
    return {
        "email": "testuser@example.com",
        "password": "testpassword123",
        "full_name": "Test User",
    }


class TestRegisterEndpoint:
    """Tests for POST /api/auth/register."""

    async def test_register_success(self, async_client: AsyncClient, test_user: dict) -> None:
        response = await async_client.post("/api/auth/register", json=test_user)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["message"] == "Registration successful"
        assert data["user"]["email"] == test_user["email"]
        assert data["user"]["role"] == "homeowner"
        assert data["user"]["is_active"] is True
        assert data["tokens"]["token_type"] == "bearer"

    async def test_register_officer(self, async_client: AsyncClient, test_user: dict) -> None:
        response = await async_client.post(
            "/api/auth/register", json={**test_user, "role": "officer"}
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["user"]["role"] == "officer"

    async def test_register_cannot_self_promote_to_admin(
        self, async_client: AsyncClient, test_user: dict
    ) -> None:
        response = await async_client.post(
            "/api/auth/register", json={**test_user, "role": "admin"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_register_duplicate_email(
        self, async_client: AsyncClient, test_user: dict
    ) -> None:
        await async_client.post("/api/auth/register", json=test_user)

        response = await async_client.post("/api/auth/register", json=test_user)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already exists" in response.json()["detail"]

    async def test_register_short_password(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/auth/register",
            json={"email": "test@example.com", "password": "short", "full_name": "T"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestLoginAndMe:
    async def test_login_then_me(self, async_client: AsyncClient, test_user: dict) -> None:
        await async_client.post("/api/auth/register", json=test_user)

        login = await async_client.post(
            "/api/auth/login",
            json={"email": test_user["email"], "password": test_user["password"]},
        )
        assert login.status_code == status.HTTP_200_OK
        token = login.json()["tokens"]["access_token"]

        me = await async_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["user"]["email"] == test_user["email"]

    async def test_login_wrong_password(self, async_client: AsyncClient, test_user: dict) -> None:
        await async_client.post("/api/auth/register", json=test_user)

        response = await async_client.post(
            "/api/auth/login", json={"email": test_user["email"], "password": "nope-nope"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_me_requires_token(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
