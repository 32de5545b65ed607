# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from inkwell.config import get_settings

_PH: PasswordHasher | None = None


def _hasher() -> PasswordHasher:
    global _PH
    if _PH is None:
        s = get_settings()
        _PH = PasswordHasher(
            time_cost=s.hash_time_cost,
            memory_cost=s.hash_memory_cost,
            parallelism=s.hash_parallelism,
        )
    return _PH


def reset_hasher() -> None:
    """Drop the cached hasher so the next call picks up current settings."""
    global _PH
    _PH = None


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _hasher().hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return _hasher().verify(hash_value, plain)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def needs_rehash(hash_value: str) -> bool:
    """True when ``hash_value`` was made with a different work factor."""
    try:
        return _hasher().check_needs_rehash(hash_value)
    except InvalidHashError:
        return True
