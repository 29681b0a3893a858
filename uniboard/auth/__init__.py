"""
Authentication and Authorization module.

Provides:
- Password hashing (Argon2id) and strength policy
- JWT access/refresh token issuance and verification
- Refresh token persistence (one live session per user)
- Role-hierarchy authorization
- Login rate limiting
"""

from uniboard.auth.jwt import (
    TokenService,
    AccessTokenClaims,
    get_token_service,
    extract_bearer,
    hash_token,
)
from uniboard.auth.dependencies import (
    get_current_identity,
    get_optional_identity,
    require_role,
    require_any_role,
    require_ownership,
)
from uniboard.auth.password import (
    hash_password,
    verify_password,
    is_valid_password,
)
from uniboard.auth.policy import (
    Identity,
    has_permission,
    has_any_role,
    can_act_on,
)
from uniboard.auth.refresh_store import RefreshTokenStore

__all__ = [
    # JWT
    "TokenService",
    "AccessTokenClaims",
    "get_token_service",
    "extract_bearer",
    "hash_token",
    # Dependencies
    "get_current_identity",
    "get_optional_identity",
    "require_role",
    "require_any_role",
    "require_ownership",
    # Password
    "hash_password",
    "verify_password",
    "is_valid_password",
    # Policy
    "Identity",
    "has_permission",
    "has_any_role",
    "can_act_on",
    # Storage
    "RefreshTokenStore",
]
