"""Password hashing and temporary password generation.

Digests are Argon2id PHC strings (``$argon2id$v=19$m=...,t=...,p=...$salt$hash``):
parameters and a random per-password salt are encoded in the digest itself,
so callers never manage salts.
"""

import secrets
import string
from functools import lru_cache

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from wakehub.core.config import get_settings

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

TEMP_PASSWORD_ALPHABET = string.ascii_letters + string.digits


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Return the process-wide Argon2id hasher built from settings."""
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.ARGON2_TIME_COST,
        memory_cost=settings.ARGON2_MEMORY_COST,
        parallelism=settings.ARGON2_PARALLELISM,
        type=Type.ID,
    )


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return get_password_hasher().hash(plain_password)


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored digest. Never raises."""
    try:
        return get_password_hasher().verify(hashed, plain_password)
    except (VerificationError, InvalidHashError, TypeError, ValueError):
        return False


def generate_password(length: int | None = None) -> str:
    """Generate a random alphanumeric temporary password."""
    if length is None:
        length = get_settings().TEMP_PASSWORD_LENGTH
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))


def normalize_username(username: str) -> str:
    """Usernames are stored and looked up case-folded to lowercase."""
    return username.strip().lower()
