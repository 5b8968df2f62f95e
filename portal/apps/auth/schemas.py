"""
Auth Pydantic schemas.

Input validation and output serialization for auth routes, plus the
`Caller` identity every content operation receives.
"""

from datetime import datetime
from typing import Optional
import uuid
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from portal.apps.auth.models import Role


# ── Identity ──────────────────────────────────────────────────────────────────

class Caller(BaseModel):
    """
    Who is making the request.

    Resolved once per request from the bearer token and passed explicitly
    into every service call. Role and department are read-only facts.
    """
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    role: Role
    department_id: Optional[uuid.UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_department_head(self) -> bool:
        return self.role is Role.DEPARTMENT_HEAD


# ── Request Schemas ───────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    """Login with email + password."""
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserCreateRequest(BaseModel):
    """Admin-issued account."""
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    role: Role = Role.EMPLOYEE
    department_id: Optional[uuid.UUID] = None


class UserUpdateRequest(BaseModel):
    """Admin edit of an account. Omitted fields stay unchanged."""
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[Role] = None
    department_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = Field(None, description="False deactivates the account")


class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., max_length=255)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)


class RefreshRequest(BaseModel):
    """Refresh access token using refresh token."""
    refresh_token: str


# ── Response Schemas ──────────────────────────────────────────────────────────

class UserResponse(BaseModel):
    """Public user data (no sensitive fields)."""
    id: uuid.UUID
    email: str
    name: str
    role: Role
    department_id: Optional[uuid.UUID]
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenPair(BaseModel):
    """Access + refresh token pair."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(BaseModel):
    """Login response with tokens and user data."""
    user: UserResponse
    tokens: TokenPair
