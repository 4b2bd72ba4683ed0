"""Account registration, login and profile lookup."""

from __future__ import annotations

from datetime import timedelta

import structlog
from homeaudit.core.auth import Role, create_access_token
from homeaudit.core.config import get_settings
from homeaudit.domain.errors import (
    AuthError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from homeaudit.infrastructure.db.models import UserModel, UserRole
from homeaudit.infrastructure.repositories import UnitOfWork
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8


class UserExistsError(DomainError):
    """Raised when attempting to register with an email that is taken."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


class AuthService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.uow = UnitOfWork(session)

    async def register_user(
        self,
        *,
        email: str,
        password: str,
        full_name: str,
        phone: str | None = None,
        role: UserRole = UserRole.HOMEOWNER,
    ) -> dict:
        """Create an account and return ``{"user": ..., "tokens": ...}``."""
        await logger.ainfo("register_attempt", email=email, role=role.value)

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if not full_name.strip():
            raise ValidationError("Full name is required")

        user = UserModel(
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            full_name=full_name.strip(),
            phone=phone,
            role=role,
            is_active=True,
        )

        try:
            await self.uow.users.add(user)
            await self.uow.commit()
            await self.uow.refresh(user)
        except IntegrityError as exc:
            await self.uow.rollback()
            await logger.awarning("register_duplicate_email", email=email)
            raise UserExistsError(f"User with email {email} already exists") from exc

        await logger.ainfo("register_success", user_id=user.id, email=user.email)
        return {"user": user_to_dict(user), "tokens": self._generate_tokens(user)}

    async def login(self, *, email: str, password: str) -> dict:
        await logger.ainfo("login_attempt", email=email)

        user = await self.uow.users.get_by_email(email.strip())
        if user is None or not verify_password(password, user.hashed_password):
            await logger.awarning("login_failed", email=email)
            raise AuthError("Invalid email or password")

        if not user.is_active:
            await logger.awarning("login_inactive_user", email=email)
            raise PermissionDeniedError("Account is inactive")

        await logger.ainfo("login_success", user_id=user.id)
        return {"user": user_to_dict(user), "tokens": self._generate_tokens(user)}

    async def get_user_by_id(self, user_id: str) -> dict:
        user = await self.uow.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user_to_dict(user)

    def _generate_tokens(self, user: UserModel) -> dict:
        settings = get_settings()
        access_token = create_access_token(
            user.id,
            role=Role(user.role.value),
            email=user.email,
            expires_delta=timedelta(seconds=settings.access_token_ttl_seconds),
        )
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.access_token_ttl_seconds,
        }


def user_to_dict(user: UserModel) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "role": user.role.value,
        "is_active": user.is_active,
        "created_at": user.created_at,
    }
