"""Security helpers (hashing and verification)."""

from __future__ import annotations

from argon2 import PasswordHasher, exceptions as argon_exc
from fastapi.concurrency import run_in_threadpool

_ph = PasswordHasher()
_PREFIX = "argon2$"

# Verified against when the username is unknown so both failure paths pay
# for one argon2 verification.
_DUMMY_HASH = _PREFIX + _ph.hash("storefront-dummy-password")


def _hash_sync(password: str) -> str:
    return f"{_PREFIX}{_ph.hash(password)}"


def _verify_sync(password: str, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    try:
        return _ph.verify(stored[len(_PREFIX) :], password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def is_password_hash(value: str | None) -> bool:
    return bool(value) and value.startswith(_PREFIX)


async def hash_password(password: str) -> str:
    """Create a salted Argon2 hash with a prefix for detection."""
    if not isinstance(password, str) or not password:
        raise ValueError("password must be a non-empty string")
    return await run_in_threadpool(_hash_sync, password)


async def verify_password(password: str, stored_hash: str | None) -> bool:
    return await run_in_threadpool(_verify_sync, password or "", stored_hash)


async def verify_dummy(password: str) -> bool:
    await verify_password(password, _DUMMY_HASH)
    return False
