"""Pydantic schemas for authentication and user endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from models.user import UserRole


class LoginRequest(BaseModel):
    """Credentials for POST /auth/login."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)


class SignupRequest(BaseModel):
    """Body for POST /auth/signup. New accounts are always players."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=1024)


class UserResponse(BaseModel):
    """Public view of an identity user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: UserRole
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SessionUserResponse(BaseModel):
    """The caller as seen by the session token."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: UserRole


class LoginResponse(BaseModel):
    """
    Response for a successful login.

    access_token goes in the Authorization header as a Bearer token.
    """

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: SessionUserResponse


class RoleUpdate(BaseModel):
    """Body for PATCH /admin/users/{id}."""

    role: UserRole


class UploaderResponse(BaseModel):
    """User data joined into listings (no timestamps)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: UserRole


class SignupResponse(BaseModel):
    """Response for POST /auth/signup."""

    message: str
    user: UserResponse
