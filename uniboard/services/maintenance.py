"""
Startup and background maintenance tasks.
"""

import asyncio
import logging
from typing import Optional

from uniboard.auth.password import hash_password_async, is_valid_password
from uniboard.auth.refresh_store import RefreshTokenStore
from uniboard.core.config import SEED_SUPER_ADMIN_EMAIL, SEED_SUPER_ADMIN_PASSWORD
from uniboard.core.database import async_session_maker
from uniboard.models.user import UserRole
from uniboard.services import users as user_service

logger = logging.getLogger(__name__)


async def purge_expired_refresh_tokens() -> int:
    async with async_session_maker() as session:
        removed = await RefreshTokenStore(session).purge_expired()
    if removed:
        logger.info("Purged %d expired refresh tokens", removed)
    return removed


async def run_refresh_token_cleanup(interval_seconds: float) -> None:
    """Purge expired refresh tokens every interval until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await purge_expired_refresh_tokens()
        except Exception:
            logger.exception("Refresh token cleanup failed; will retry next interval")


async def create_super_admin_if_needed(
    email: str = SEED_SUPER_ADMIN_EMAIL,
    password: str = SEED_SUPER_ADMIN_PASSWORD,
) -> Optional[str]:
    """
    Create the first super admin when configured and none exists.

    Returns the new account's email, or None when nothing was created.
    """
    if not email:
        return None
    email = email.strip().lower()
    if not password or not is_valid_password(password):
        logger.warning("SEED_SUPER_ADMIN_PASSWORD is missing or too weak; super admin not created")
        return None

    async with async_session_maker() as session:
        if await user_service.count_users_with_role(session, UserRole.SUPER_ADMIN):
            return None

        user = await user_service.create_user(
            session,
            email=email,
            password_hash=await hash_password_async(password),
            role=UserRole.SUPER_ADMIN,
            first_name="Super",
            last_name="Admin",
        )

    logger.info("Created super admin %s", user.email)
    return user.email
