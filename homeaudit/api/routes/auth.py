"""Authentication routes - register, login, profile."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from homeaudit.api.deps import get_current_user, get_db_session, http_error
from homeaudit.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserResponse,
)
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.auth_service import AuthService, UserExistsError
from homeaudit.infrastructure.db.models import UserRole
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()
router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    service = AuthService(session)

    try:
        result = await service.register_user(
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
            phone=payload.phone,
            role=UserRole(payload.role.value),
        )
    except UserExistsError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except DomainError as exc:
        raise http_error(exc) from exc

    return RegisterResponse(
        user=UserResponse(**result["user"]),
        tokens=TokenResponse(**result["tokens"]),
    )


@router.post("/login", response_model=LoginResponse, summary="User login")
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    service = AuthService(session)

    try:
        result = await service.login(email=payload.email, password=payload.password)
    except DomainError as exc:
        raise http_error(exc) from exc

    return LoginResponse(
        user=UserResponse(**result["user"]),
        tokens=TokenResponse(**result["tokens"]),
    )


@router.get("/me", response_model=MeResponse, summary="Get current user")
async def get_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    service = AuthService(session)

    try:
        user_data = await service.get_user_by_id(user.user_id)
    except DomainError as exc:
        raise http_error(exc) from exc

    return MeResponse(user=UserResponse(**user_data))
