"""
Application configuration.

Values are read from the environment (and a local .env file when present)
once at import time. Authentication settings are additionally bundled into
an immutable AuthSettings object so the token service can be built from
them explicitly.
"""

import logging
import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Base directory of the project (parent of 'uniboard')
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Database Directory
DB_DIR = Path(os.getenv("DB_DIR", str(BASE_DIR / "db")))

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{DB_DIR / 'uniboard.db'}")
SQL_DEBUG = os.getenv("SQL_DEBUG", "false").lower() == "true"
DB_TIMEOUT = float(os.getenv("DB_TIMEOUT", "30"))

# Tokens
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
TOKEN_ISSUER = os.getenv("TOKEN_ISSUER", "uniboard-api")
TOKEN_AUDIENCE = os.getenv("TOKEN_AUDIENCE", "uniboard-client")

# Login rate limiting
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
LOGIN_MAX_ATTEMPTS = int(os.getenv("LOGIN_MAX_ATTEMPTS", "5"))
LOGIN_WINDOW_SECONDS = int(os.getenv("LOGIN_WINDOW_SECONDS", str(15 * 60)))

# Maintenance
REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS = int(
    os.getenv("REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS", str(24 * 60 * 60))
)

# HTTP
API_PREFIX = "/api"
REFRESH_COOKIE_NAME = "refreshToken"
TRUSTED_HOSTS = os.getenv("TRUSTED_HOSTS", "*")
# Proxies whose X-Forwarded-For is believed. Empty means the peer address is used as is.
FORWARDED_ALLOW_IPS = os.getenv("FORWARDED_ALLOW_IPS", "")

# First super admin (created at startup when no super admin exists)
SEED_SUPER_ADMIN_EMAIL = os.getenv("SEED_SUPER_ADMIN_EMAIL", "")
SEED_SUPER_ADMIN_PASSWORD = os.getenv("SEED_SUPER_ADMIN_PASSWORD", "")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

# Publicly known development secrets. Never acceptable in production.
KNOWN_DEV_SECRETS = frozenset({"dev-access-secret", "dev-refresh-secret", "changeme", "secret"})


# Ensure DB directory exists
os.makedirs(DB_DIR, exist_ok=True)


class ConfigurationError(RuntimeError):
    """Raised at startup when the configuration is unsafe or inconsistent."""


def is_production() -> bool:
    return ENVIRONMENT == "production"


def get_cors_allow_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def get_trusted_hosts() -> list[str]:
    return [host.strip() for host in TRUSTED_HOSTS.split(",") if host.strip()]


def get_forwarded_allow_ips() -> list[str]:
    return [ip.strip() for ip in FORWARDED_ALLOW_IPS.split(",") if ip.strip()]


@dataclass(frozen=True)
class AuthSettings:
    """Immutable token and session settings."""

    access_secret: str
    refresh_secret: str
    access_token_expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES
    refresh_token_expire_days: int = REFRESH_TOKEN_EXPIRE_DAYS
    issuer: str = TOKEN_ISSUER
    audience: str = TOKEN_AUDIENCE
    secure_cookies: bool = False


def _resolve_secret(name: str) -> str:
    value = os.getenv(name)
    if value:
        return value
    if is_production():
        raise ConfigurationError(f"{name} must be set in production")
    logger.warning("%s is not set; using a random per-process value (development only)", name)
    return secrets.token_urlsafe(32)


def validate_auth_secrets(access_secret: str, refresh_secret: str, production: bool) -> None:
    """
    Check the two signing secrets.

    They must always differ. In production they must also not be one of the
    well-known development defaults.
    """
    if access_secret == refresh_secret:
        raise ConfigurationError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
    if production:
        for secret in (access_secret, refresh_secret):
            if secret in KNOWN_DEV_SECRETS or len(secret) < 32:
                raise ConfigurationError(
                    "JWT secrets must be at least 32 characters and not a default value in production"
                )


@lru_cache
def get_auth_settings() -> AuthSettings:
    """Build the process-wide auth settings once."""
    access_secret = _resolve_secret("JWT_SECRET")
    refresh_secret = _resolve_secret("JWT_REFRESH_SECRET")
    validate_auth_secrets(access_secret, refresh_secret, is_production())
    return AuthSettings(
        access_secret=access_secret,
        refresh_secret=refresh_secret,
        secure_cookies=is_production(),
    )
