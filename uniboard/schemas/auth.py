"""
Authentication-related schemas.

Request fields are optional at the schema level; the endpoints check for
missing values themselves so every input fault maps to a 400 with the
documented message.
"""

from typing import Optional

from pydantic import Field

from uniboard.schemas.common import CamelModel
from uniboard.schemas.user import UserPublic


class RegisterRequest(CamelModel):
    """Public student registration."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    student_id: Optional[str] = Field(default=None, max_length=32)


class LoginRequest(CamelModel):
    """Login request with email and password."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)


class AuthResponse(CamelModel):
    """Returned by register and login. The refresh token travels in a cookie."""

    user: UserPublic
    access_token: str = Field(description="JWT access token")


class TokenRefreshResponse(CamelModel):
    access_token: str = Field(description="New JWT access token")
