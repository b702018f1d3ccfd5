"""Password hashing (argon2id) and the length policy for new passwords."""

from __future__ import annotations

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from studyplanner.config import get_settings

_hasher = PasswordHasher(type=Type.ID)


class PasswordStrengthError(ValueError):
    """A new password falls outside the configured length bounds."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """True when the stored hash was made with older hasher parameters."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> None:
    settings = get_settings()
    low, high = settings.password_min_length, settings.password_max_length
    if not password.strip():
        msg = "Password cannot be blank"
        raise PasswordStrengthError(msg)
    if not low <= len(password) <= high:
        msg = f"Password must be at least {low} and at most {high} characters"
        raise PasswordStrengthError(msg)
