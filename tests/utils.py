from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any

from homeaudit.api.deps import issue_smoke_token
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.infrastructure.db.models import UserModel, UserRole
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def auth_headers(user_id: str, role: Role, email: str = "user@example.com") -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role, email=email)
    return {"Authorization": f"Bearer {token}"}


def actor(user: UserModel) -> User:
    return User(user_id=user.id, role=Role(user.role.value), email=user.email)


async def seed_user(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    role: UserRole,
    email: str,
    full_name: str,
    is_active: bool = True,
) -> UserModel:
    """Insert a user directly; the password hash is irrelevant to these tests."""
    async with session_factory() as session:
        user = UserModel(
            email=email,
            hashed_password="not-a-real-hash",
            full_name=full_name,
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        return user


def days_from_today(days: int) -> date:
    return datetime.now(UTC).date() + timedelta(days=days)


def booking_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-0100",
        "address": "12 Elm Street, Springfield",
        "preferred_date": days_from_today(2).isoformat(),
        "preferred_time": "2:00 PM",
        "has_receipts_ready": True,
    }
    payload.update(overrides)
    return payload
