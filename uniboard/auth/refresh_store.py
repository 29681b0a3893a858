"""
Refresh token persistence.

Each user has at most one live refresh token. ``store`` replaces whatever
the user had before in a single transaction; the UNIQUE constraint on
refresh_tokens.user_id turns a lost race between two concurrent logins into
an IntegrityError, and the loser simply redoes its replace.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniboard.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)

STORE_MAX_ATTEMPTS = 3


class RefreshTokenStore:
    """User-scoped refresh token records on top of an AsyncSession."""

    def __init__(self, session: AsyncSession, ttl: timedelta = timedelta(days=7)):
        self.session = session
        self.ttl = ttl

    async def store(self, user_id: str, token_hash: str) -> None:
        """
        Replace the user's refresh token with a new one.

        Commits the session. Callers commit their own pending changes first,
        since a retry rolls the session back.
        """
        for attempt in range(1, STORE_MAX_ATTEMPTS + 1):
            try:
                await self.session.execute(
                    delete(RefreshToken).where(RefreshToken.user_id == user_id)
                )
                self.session.add(
                    RefreshToken(
                        user_id=user_id,
                        token_hash=token_hash,
                        expires_at=datetime.now(timezone.utc) + self.ttl,
                    )
                )
                await self.session.commit()
                return
            except IntegrityError:
                await self.session.rollback()
                if attempt == STORE_MAX_ATTEMPTS:
                    raise
                logger.info("Concurrent refresh token write for user %s, retrying", user_id)

    async def verify(self, user_id: str, token_hash: str) -> bool:
        """True only for an unexpired record matching both user and token."""
        result = await self.session.execute(
            select(RefreshToken.id).where(
                RefreshToken.user_id == user_id,
                RefreshToken.token_hash == token_hash,
                RefreshToken.expires_at > datetime.now(timezone.utc),
            )
        )
        return result.first() is not None

    async def remove(self, token_hash: str) -> None:
        """Delete the record for this token. Removing an unknown token is a no-op."""
        await self.session.execute(
            delete(RefreshToken).where(RefreshToken.token_hash == token_hash)
        )
        await self.session.commit()

    async def remove_for_user(self, user_id: str) -> None:
        await self.session.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user_id)
        )
        await self.session.commit()

    async def purge_expired(self) -> int:
        """Delete every expired record and return how many were removed."""
        result = await self.session.execute(
            delete(RefreshToken).where(RefreshToken.expires_at <= datetime.now(timezone.utc))
        )
        await self.session.commit()
        return result.rowcount or 0
