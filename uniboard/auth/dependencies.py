"""
FastAPI dependencies for authentication and authorization.

Provides:
- get_current_identity: Verify the bearer access token and resolve the user
- get_optional_identity: Same, but None for anonymous callers
- require_role / require_any_role / require_ownership: Role gates

Handlers receive the resolved Identity as a dependency result; nothing is
stored on the request object.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from uniboard.auth.jwt import TokenService, extract_bearer, get_token_service
from uniboard.auth.policy import (
    Identity,
    RoleLike,
    authorize_any_role,
    authorize_owner,
    authorize_role,
)
from uniboard.core.database import get_db
from uniboard.core.errors import (
    InvalidTokenError,
    MissingTokenError,
    UserNotFoundError,
)
from uniboard.models.user import User, UserRole
from uniboard.services.users import find_user_by_id

logger = logging.getLogger(__name__)


def identity_from_user(user: User) -> Identity:
    return Identity(
        id=user.id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
        student_id=user.student_id,
    )


async def authenticate(
    authorization: Optional[str],
    db: AsyncSession,
    tokens: TokenService,
) -> Identity:
    """
    Resolve the caller from an Authorization header value.

    Raises:
        MissingTokenError: No bearer token present
        TokenExpiredError / InvalidTokenError: Token failed verification
        UserNotFoundError: Token is valid but the account no longer exists
    """
    token = extract_bearer(authorization)
    if not token:
        raise MissingTokenError()

    try:
        claims = tokens.verify_access_token(token)
    except InvalidTokenError as exc:
        logger.info("Rejected access token: %s", exc.detail)
        raise

    # Token validity alone is not enough: the account must still exist
    user = await find_user_by_id(db, claims.user_id)
    if user is None:
        raise UserNotFoundError()

    return identity_from_user(user)


async def get_current_identity(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    return await authenticate(request.headers.get("Authorization"), db, tokens)


async def get_optional_identity(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[Identity]:
    """
    Try to resolve the caller, returning None for anonymous requests.

    An invalid token or a vanished account is treated as anonymous too.
    """
    try:
        return await authenticate(request.headers.get("Authorization"), db, tokens)
    except (MissingTokenError, InvalidTokenError, UserNotFoundError):
        return None


def require_role(required_role: RoleLike):
    """
    Dependency requiring the given role or higher.

    Usage:
        @router.get("/admin-only")
        async def admin_endpoint(
            identity: Identity = Depends(require_role(UserRole.ADMIN))
        ):
            ...
    """
    async def role_checker(
        identity: Identity = Depends(get_current_identity),
    ) -> Identity:
        return authorize_role(identity, required_role)

    return role_checker


def require_any_role(*allowed_roles: RoleLike):
    """Dependency requiring one of the given roles (or higher)."""
    async def role_checker(
        identity: Identity = Depends(get_current_identity),
    ) -> Identity:
        return authorize_any_role(identity, allowed_roles)

    return role_checker


def require_ownership(param: str = "user_id"):
    """
    Dependency allowing the owner of the resource, or an admin and above.

    The owner id is read from the path parameter named ``param``.
    """
    async def ownership_checker(
        request: Request,
        identity: Identity = Depends(get_current_identity),
    ) -> Identity:
        return authorize_owner(identity, request.path_params.get(param, ""))

    return ownership_checker


require_student = require_role(UserRole.STUDENT)
require_admin = require_role(UserRole.ADMIN)
require_super_admin = require_role(UserRole.SUPER_ADMIN)


def get_client_ip(request: Request) -> str:
    """
    Client address of the request.

    Forwarded headers are honoured only through ProxyHeadersMiddleware, which
    main.py installs when FORWARDED_ALLOW_IPS names the trusted proxies.
    """
    if request.client:
        return request.client.host

    return "unknown"
