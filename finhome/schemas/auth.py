"""Pydantic schemas for authentication API endpoints."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserRegisterRequest(BaseModel):
    """Request schema for user registration."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=12, description="User password (min 12 characters)")
    full_name: Optional[str] = Field(None, max_length=255, description="Display name")
    preferred_currency: Literal["VND", "USD"] = Field(default="VND")


class UserLoginRequest(BaseModel):
    """Request schema for user login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class TokenRefreshRequest(BaseModel):
    """Request schema for token refresh."""

    refresh_token: str = Field(..., description="Refresh token")


class TokenResponse(BaseModel):
    """Response schema for token operations."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(default=1800, description="Access token expiration in seconds")


class UserResponse(BaseModel):
    """Response schema for user information."""

    model_config = {"from_attributes": True}

    id: UUID
    email: str
    full_name: Optional[str]
    preferred_currency: str
    subscription_tier: str
    is_admin: bool
    is_active: bool
    experience_points: int
    level: int
    current_streak: int
    created_at: datetime


class AuthResponse(BaseModel):
    """Response schema for authentication operations."""

    user: UserResponse
    tokens: TokenResponse


class UserUpdate(BaseModel):
    """Request schema for profile updates."""

    full_name: Optional[str] = Field(None, max_length=255)
    preferred_currency: Optional[Literal["VND", "USD"]] = None


class PasswordChangeRequest(BaseModel):
    """Request schema for password change."""

    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=12, description="New password (min 12 characters)")
