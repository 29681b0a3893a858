"""
Password hashing with Argon2id.

Security parameters are fixed and documented here rather than configurable:
- time_cost=3, memory_cost=64 MiB, parallelism=4
- ~250ms per hash on modern hardware, the Argon2 analogue of bcrypt cost 12
- 16-byte random salt per hash, so hashing the same password twice
  yields two different strings

Hashing and verification are CPU-bound. Request handlers must use the
*_async variants, which run on the worker thread pool instead of the
event loop.
"""

import logging
import re
import secrets
import string

from argon2 import PasswordHasher
from argon2.exceptions import Argon2Error, InvalidHashError, VerifyMismatchError
from starlette.concurrency import run_in_threadpool

from uniboard.core.errors import WeakPasswordError

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
PASSWORD_SYMBOLS = "@$!%*?&"
PASSWORD_REGEX = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])")

ph = PasswordHasher(
    time_cost=3,        # Number of iterations
    memory_cost=65536,  # 64 MB memory usage
    parallelism=4,      # Number of parallel threads
    hash_len=32,        # Length of the hash in bytes
    salt_len=16,        # Length of the random salt
)


def is_valid_password(password: str) -> bool:
    """
    Check the password strength policy.

    Requires at least 8 characters with one uppercase letter, one lowercase
    letter, one digit and one of the symbols @$!%*?&.
    """
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        return False
    return PASSWORD_REGEX.match(password) is not None


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Raises:
        WeakPasswordError: If the password does not meet the strength policy
    """
    if not is_valid_password(password):
        raise WeakPasswordError()
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    Never raises: a mismatch, a malformed hash or any other hashing failure
    all return False so callers cannot tell them apart.
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (Argon2Error, InvalidHashError, TypeError, ValueError):
        logger.warning("Password verification failed on an unreadable hash")
        return False


async def hash_password_async(password: str) -> str:
    return await run_in_threadpool(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(verify_password, password, password_hash)


def needs_rehash(password_hash: str) -> bool:
    """
    Check if a password hash was made with outdated parameters.

    After a successful login, check this and rehash if needed.
    """
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError:
        return True


def generate_secure_password(length: int = 16) -> str:
    """
    Generate a random password that satisfies the strength policy.

    Used when a super admin creates an admin account without a password and
    when seeding the first super admin.
    """
    if length < 12:
        length = 12

    # Ensure at least one of each required character type
    password = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(PASSWORD_SYMBOLS),
    ]

    alphabet = string.ascii_letters + string.digits + PASSWORD_SYMBOLS
    password.extend(secrets.choice(alphabet) for _ in range(length - 4))

    secrets.SystemRandom().shuffle(password)

    return "".join(password)
