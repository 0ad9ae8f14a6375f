"""Password hashing and password policy helpers."""

import re
from typing import Optional

from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)

MIN_PASSWORD_LENGTH = 8


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain text password against a stored bcrypt hash.

    Malformed hashes count as a mismatch rather than an error.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a plain text password with bcrypt."""
    return pwd_context.hash(password)


def password_policy_error(password: str) -> Optional[str]:
    """
    Return a message describing why a password is too weak, or None.

    Passwords need MIN_PASSWORD_LENGTH characters with at least one letter
    and one digit.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not re.search(r"[A-Za-z]", password) or not re.search(r"\d", password):
        return "Password must contain at least one letter and one digit"
    return None
