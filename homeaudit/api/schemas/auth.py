"""Pydantic schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field


class RegistrableRole(str, Enum):
    """Roles open to self-registration; admins are provisioned out of band."""

    HOMEOWNER = "homeowner"
    OFFICER = "officer"


# --- Request Schemas ---


class RegisterRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 characters)",
    )
    full_name: str = Field(..., min_length=1, max_length=128, description="User's full name")
    phone: str | None = Field(None, max_length=32)
    role: RegistrableRole = Field(
        default=RegistrableRole.HOMEOWNER,
        description="User role (defaults to homeowner)",
    )


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


# --- Response Schemas ---


class TokenResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token TTL in seconds")


class UserResponse(BaseModel):
    id: str = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    full_name: str = Field(..., description="User's full name")
    phone: str | None = None
    role: str = Field(..., description="User role")
    is_active: bool = Field(..., description="Whether the account may be used")
    created_at: datetime = Field(..., description="Account creation timestamp")

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str = Field(default="Registration successful")
    user: UserResponse
    tokens: TokenResponse


class LoginResponse(BaseModel):
    message: str = Field(default="Login successful")
    user: UserResponse
    tokens: TokenResponse


class MeResponse(BaseModel):
    user: UserResponse
