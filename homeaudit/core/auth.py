from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum

import jwt
from homeaudit.core.config import get_settings


class TokenError(Exception):
    """Raised when a token cannot be decoded or validated."""


class Role(str, Enum):
    HOMEOWNER = "homeowner"
    OFFICER = "officer"
    ADMIN = "admin"

    @classmethod
    def contains(cls, value: str) -> bool:
        return value in {role.value for role in cls}


def create_access_token(
    subject: str,
    *,
    role: Role | str,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a bearer token for one user; every account carries exactly one role."""
    settings = get_settings()

    role_value = role.value if isinstance(role, Role) else role
    if role_value not in settings.allowed_roles or not Role.contains(role_value):
        raise TokenError(f"Unsupported role: {role_value}")

    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    payload = {
        "sub": subject,
        "role": role_value,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "iss": settings.app_name,
    }

    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode a bearer token and normalise its role claim to a ``Role``."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.PyJWTError as exc:  # pragma: no cover - third-party raises numerous subclasses
        raise TokenError("Invalid token") from exc

    role_value = payload.get("role", "")
    if not Role.contains(role_value):
        raise TokenError(f"Unsupported role: {role_value}")
    payload["role"] = Role(role_value)
    return payload
