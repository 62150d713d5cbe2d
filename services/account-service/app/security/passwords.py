"""Password hashing and verification."""

from __future__ import annotations

from functools import lru_cache

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_password(password: str) -> str:
    """Create an Argon2id hash with a prefix for detection."""
    return f"{_PREFIX}{_ph.hash(password)}"


def verify_password(password: str, stored_hash: str | None) -> bool:
    """Return ``True`` when ``password`` matches ``stored_hash``; never raises on bad digests."""
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    try:
        return _ph.verify(stored[len(_PREFIX) :], password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


@lru_cache(maxsize=1)
def dummy_hash() -> str:
    """A fixed digest to verify against when no account exists, so lookups cost the same."""
    return hash_password("account-service-placeholder")
