"""
UniBoard Database Models

This module exports all SQLAlchemy models for the application.
"""

from uniboard.models.user import User, UserRole
from uniboard.models.refresh_token import RefreshToken

__all__ = [
    "User",
    "UserRole",
    "RefreshToken",
]
