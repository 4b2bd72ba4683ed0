"""Unit tests for authentication service."""

from __future__ import annotations

import pytest
from homeaudit.core.auth import Role, decode_access_token
from homeaudit.domain.errors import AuthError, PermissionDeniedError, ValidationError
from homeaudit.domain.services.auth_service import (
    AuthService,
    UserExistsError,
    hash_password,
    verify_password,
)
from homeaudit.infrastructure.db.models import UserRole


class TestPasswordHashing:
    def test_hash_password_returns_bcrypt_hash(self) -> None:
        hashed = hash_password("test_password_123")

        assert hashed.startswith("$2b$")
        assert len(hashed) == 60

    def test_verify_password(self) -> None:
        hashed = hash_password("TestPassword123")

        assert verify_password("TestPassword123", hashed) is True
        assert verify_password("testpassword123", hashed) is False


class TestAuthService:
    async def test_register_returns_user_and_token(self, session) -> None:
        result = await AuthService(session).register_user(
            email="Owner@Example.com", password="correct-horse", full_name="Olive Owner"
        )

        assert result["user"]["email"] == "owner@example.com"
        assert result["user"]["role"] == "homeowner"
        payload = decode_access_token(result["tokens"]["access_token"])
        assert payload["sub"] == result["user"]["id"]
        assert payload["role"] is Role.HOMEOWNER

    async def test_register_rejects_short_password(self, session) -> None:
        with pytest.raises(ValidationError):
            await AuthService(session).register_user(
                email="short@example.com", password="short", full_name="Short"
            )

    async def test_register_duplicate_email(self, session_factory) -> None:
        async with session_factory() as session:
            await AuthService(session).register_user(
                email="dup@example.com", password="password123", full_name="First"
            )
        async with session_factory() as session:
            with pytest.raises(UserExistsError):
                await AuthService(session).register_user(
                    email="DUP@example.com", password="password123", full_name="Second"
                )

    async def test_login_checks_password(self, session) -> None:
        service = AuthService(session)
        await service.register_user(
            email="officer@example.com",
            password="password123",
            full_name="Oscar Officer",
            role=UserRole.OFFICER,
        )

        result = await service.login(email="officer@example.com", password="password123")
        assert result["user"]["role"] == "officer"

        with pytest.raises(AuthError):
            await service.login(email="officer@example.com", password="wrong-password")

    async def test_login_refuses_inactive_account(self, session) -> None:
        service = AuthService(session)
        result = await service.register_user(
            email="gone@example.com", password="password123", full_name="Gone"
        )
        user = await service.uow.users.get(result["user"]["id"])
        user.is_active = False
        await session.commit()

        with pytest.raises(PermissionDeniedError):
            await service.login(email="gone@example.com", password="password123")
