"""Pydantic schemas for registration and login."""

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str


class TokenResponse(BaseModel):
    token: str


class MeResponse(BaseModel):
    id: str
    email: str | None = None
