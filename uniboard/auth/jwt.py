"""
JWT token handling.

Security measures:
- Short-lived access tokens (15 min default) carrying identity and role
- Longer-lived refresh tokens (7 days) carrying only the user id
- Separate signing secret per token class
- Explicit "type" claim checked on every verification, so an access token
  is never accepted as a refresh token and vice versa
- Issuer and audience validation
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

from jose import jwt, JWTError, ExpiredSignatureError

from uniboard.core.config import AuthSettings, get_auth_settings
from uniboard.core.errors import InvalidTokenError, TokenExpiredError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class AccessTokenClaims:
    """Decoded access token."""
    user_id: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues and verifies access and refresh tokens.

    Built once from AuthSettings and never mutated afterwards.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        issuer: str = "uniboard-api",
        audience: str = "uniboard-client",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.issuer = issuer
        self.audience = audience
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "TokenService":
        return cls(
            access_secret=settings.access_secret,
            refresh_secret=settings.refresh_secret,
            issuer=settings.issuer,
            audience=settings.audience,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )

    def issue_access_token(self, user_id: str, email: str, role: str) -> str:
        """
        Create a short-lived access token.

        Args:
            user_id: The user's id
            email: User's email address
            role: User's role for authorization

        Returns:
            Encoded JWT string
        """
        now = _now()
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + self.access_ttl,
            "iss": self.issuer,
            "aud": self.audience,
        }
        return jwt.encode(payload, self._access_secret, algorithm=JWT_ALGORITHM)

    def issue_refresh_token(self, user_id: str) -> str:
        """
        Create a long-lived refresh token.

        Carries no user claims besides the id. The random jti keeps two
        tokens minted within the same second distinct.
        """
        now = _now()
        payload = {
            "sub": str(user_id),
            "type": REFRESH_TOKEN_TYPE,
            "iat": now,
            "exp": now + self.refresh_ttl,
            "iss": self.issuer,
            "aud": self.audience,
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self._refresh_secret, algorithm=JWT_ALGORITHM)

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """
        Verify and decode an access token.

        Raises:
            TokenExpiredError: If the token is past its expiry
            InvalidTokenError: Bad signature, issuer, audience, structure or type
        """
        payload = self._decode(token, self._access_secret, ACCESS_TOKEN_TYPE)
        try:
            return AccessTokenClaims(
                user_id=str(payload["sub"]),
                email=payload["email"],
                role=payload["role"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError(detail=f"Malformed access token claims: {exc}")

    def verify_refresh_token(self, token: str) -> str:
        """
        Verify a refresh token and return the user id it was issued to.

        Raises:
            TokenExpiredError: If the token is past its expiry
            InvalidTokenError: Bad signature, issuer, audience, structure or type
        """
        payload = self._decode(token, self._refresh_secret, REFRESH_TOKEN_TYPE)
        user_id = payload.get("sub")
        if not user_id:
            raise InvalidTokenError(detail="Refresh token has no subject")
        return str(user_id)

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        kind = expected_type.capitalize()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            raise TokenExpiredError(detail=f"{kind} token expired")
        except (JWTError, AttributeError, TypeError, ValueError):
            raise InvalidTokenError(detail=f"Invalid {expected_type} token")

        if payload.get("type") != expected_type:
            raise InvalidTokenError(
                detail=f"Invalid token type. Expected {expected_type}, got {payload.get('type')}"
            )
        return payload


def _now() -> datetime:
    # JWT timestamps have one-second resolution
    return datetime.now(timezone.utc).replace(microsecond=0)


def extract_bearer(header: Optional[str]) -> Optional[str]:
    """
    Extract the token from an "Authorization: Bearer <token>" header.

    Returns None when the header is absent or malformed; whether that is
    an error is the caller's decision.
    """
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def hash_token(token: str) -> str:
    """SHA-256 digest used as the stored form of a refresh token."""
    return hashlib.sha256(token.encode()).hexdigest()


def get_token_expiration(token: str) -> Optional[datetime]:
    """
    Read the exp claim without verifying the token.

    For diagnostics only. Do NOT use this for authentication.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


def is_token_expired(token: str) -> bool:
    expires_at = get_token_expiration(token)
    return expires_at is None or expires_at <= datetime.now(timezone.utc)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service, built from settings on first use."""
    return TokenService.from_settings(get_auth_settings())
