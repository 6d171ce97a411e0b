"""Password hashing and opaque bearer token primitives.

Uses passlib with bcrypt for password hashing.  Bearer tokens are random
URL-safe strings; only their SHA-256 digest is ever persisted.
"""

import hashlib
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt.

    Args:
        password: The plaintext password to hash.

    Returns:
        The bcrypt-hashed password string (salted, so differs per call).
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a plaintext password against a bcrypt hash.

    A missing, malformed or unrecognised hash is treated as a mismatch.

    Args:
        plain_password: The plaintext password to verify.
        hashed_password: The stored hash to verify against.

    Returns:
        True if the password matches, False otherwise.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def password_needs_rehash(hashed_password: str) -> bool:
    """Return True when the stored hash uses a deprecated scheme or cost."""
    try:
        return pwd_context.needs_update(hashed_password)
    except (ValueError, TypeError):
        return False


def generate_token(nbytes: int = 40) -> str:
    """Generate a new opaque bearer token.

    Args:
        nbytes: Bytes of randomness before URL-safe encoding.

    Returns:
        The plaintext token.
    """
    return secrets.token_urlsafe(nbytes)


def hash_token(token: str) -> str:
    """Return the SHA-256 hex digest under which a token is stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

