# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import Request

from inkwell.auth import session as sessions
from inkwell.auth.authenticator import Authenticator
from inkwell.auth.session import Identity, Session
from inkwell.models import Role

ROLE_ORDER = {Role.USER.value: 0, Role.ADMIN.value: 1}


def _rank(role: str) -> int:
    return ROLE_ORDER.get((role or Role.USER.value).strip().upper(), 0)


def has_role(identity: Optional[Identity], min_role: Role) -> bool:
    return identity is not None and _rank(identity.role) >= _rank(min_role.value)


def load_session(request: Request) -> Session:
    sess = getattr(request.state, "session", None)
    if sess is not None:
        return sess
    return sessions.read(request)


def current_user_optional(request: Request) -> Optional[Identity]:
    return load_session(request).identity


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def signin_url(request: Request) -> str:
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    return f"/signin?next={quote(next_url, safe='/')}"


def safe_next(next_url: Optional[str]) -> str:
    """Only same-site absolute paths are accepted as redirect targets."""
    n = (next_url or "").strip()
    if not n.startswith("/") or n.startswith("//") or "\\" in n:
        return "/"
    return n
