"""
User-related schemas.
"""

from typing import Optional
from datetime import datetime

from pydantic import Field

from uniboard.models.user import User, UserRole
from uniboard.schemas.common import CamelModel


class UserPublic(CamelModel):
    """User as exposed by the API (no password hash)."""

    id: str
    email: str
    role: UserRole
    first_name: str
    last_name: str
    student_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AdminCreateRequest(CamelModel):
    """Super admin request to create an admin account."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(
        default=None,
        max_length=128,
        description="Initial password. If not provided, a secure one is generated.",
    )
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class AdminCreateResponse(CamelModel):
    user: UserPublic
    generated_password: Optional[str] = Field(
        default=None,
        description="Only present when the password was generated (shown once).",
    )


class RoleUpdateRequest(CamelModel):
    role: Optional[str] = None


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
        student_id=user.student_id,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
