# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Sign-in orchestration and the "who is calling" query.

Outcomes are returned as values (``Authenticated``, ``Unauthenticated``,
``RedirectRequested``); turning them into HTTP responses is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Union

from sqlalchemy.orm import Session as DbSession

from inkwell.auth import session as sessions
from inkwell.auth.passwords import hash_password, needs_rehash, verify_password
from inkwell.auth.session import Identity, Session
from inkwell.auth.users import find_user_by_email, update_user_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
USER_PASS = "user-pass"


@dataclass(frozen=True)
class Authenticated:
    identity: Identity


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class RedirectRequested:
    target: str
    set_cookie: Optional[str] = None


AuthOutcome = Union[Authenticated, Unauthenticated, RedirectRequested]


@dataclass(frozen=True)
class SignInResult:
    identity: Optional[Identity] = None
    set_cookie: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.identity is not None


Strategy = Callable[[DbSession, Mapping[str, str]], Optional[Identity]]


def user_pass_strategy(db: DbSession, credentials: Mapping[str, str]) -> Optional[Identity]:
    """Email + password against the stored argon2 hash."""
    email = credentials.get("email") or ""
    password = credentials.get("password") or ""
    user = find_user_by_email(db, email)
    if user is None:
        # Unknown emails still pay for one verify.
        verify_password(_dummy_hash(), password)
        return None
    if not verify_password(user.password_hash, password):
        return None
    if needs_rehash(user.password_hash):
        update_user_password(db, user.id, hash_password(password), expected_hash=user.password_hash)
        logger.info("Rehashed password for user %s with current parameters", user.id)
    return Identity.from_user(user)


_DUMMY_HASH: Optional[str] = None


def _dummy_hash() -> str:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = hash_password("inkwell-dummy-password-0")
    return _DUMMY_HASH


class Authenticator:
    def __init__(self, strategies: Optional[Dict[str, Strategy]] = None):
        self.strategies: Dict[str, Strategy] = dict(strategies or {USER_PASS: user_pass_strategy})

    def use(self, name: str, strategy: Strategy) -> "Authenticator":
        self.strategies[name] = strategy
        return self

    def authenticate(
        self,
        strategy: str,
        db: DbSession,
        credentials: Mapping[str, str],
        session: Session,
    ) -> SignInResult:
        """Check ``credentials``; on success put the identity in a fresh session.

        Unknown email and wrong password produce the same error.
        """
        identity = self.strategies[strategy](db, credentials)
        if identity is None:
            logger.warning("Failed sign-in for %s", credentials.get("email") or "<empty>")
            return SignInResult(error=INVALID_CREDENTIALS)
        session.clear()
        session.set(identity)
        logger.info("User %s signed in", identity.id)
        return SignInResult(identity=identity, set_cookie=sessions.commit(session))

    def is_authenticated(
        self,
        session: Session,
        *,
        success_redirect: Optional[str] = None,
        failure_redirect: Optional[str] = None,
    ) -> AuthOutcome:
        identity = session.identity
        if identity is None:
            if failure_redirect:
                return RedirectRequested(failure_redirect)
            return Unauthenticated()
        if success_redirect:
            return RedirectRequested(success_redirect)
        return Authenticated(identity)

    def logout(self, session: Session, *, redirect_to: str = "/signin") -> RedirectRequested:
        identity = session.identity
        cookie = sessions.destroy(session)
        if identity is not None:
            logger.info("User %s signed out", identity.id)
        return RedirectRequested(redirect_to, set_cookie=cookie)