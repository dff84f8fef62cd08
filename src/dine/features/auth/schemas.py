"""Request and response schemas for auth endpoints."""

from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.dine.services.auth.models import UserPublic

MIN_PASSWORD_LENGTH = 6


class AuthRequest(BaseModel):
    """Credentials for register and login. Passwords are taken verbatim."""

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class AuthResponse(BaseModel):
    """Response for register, login, and refresh. Tokens travel only as cookies."""

    message: str
    user: UserPublic


class MeResponse(BaseModel):
    """Response model for the current user."""

    user: UserPublic


class MessageResponse(BaseModel):
    message: str
