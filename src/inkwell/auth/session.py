# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signed cookie sessions.

A session is a plain value: handlers ``read`` it from the request, mutate it,
then ``commit`` (or ``destroy``) it to get the ``Set-Cookie`` header value that
they attach to their response. Nothing is stored server side.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional

from fastapi.requests import HTTPConnection
from fastapi.responses import Response
from itsdangerous import BadSignature, URLSafeTimedSerializer

from inkwell.config import get_settings, secret_key

logger = logging.getLogger(__name__)

IDENTITY_KEY = "user"


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    name: str
    role: str
    image: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "Identity":
        role = getattr(user.role, "value", user.role)
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name or "",
            role=str(role),
            image=user.image,
        )

    @classmethod
    def from_payload(cls, data: Any) -> Optional["Identity"]:
        if not isinstance(data, Mapping):
            return None
        uid = str(data.get("id") or "").strip()
        email = str(data.get("email") or "").strip()
        if not uid or not email:
            return None
        image = data.get("image")
        return cls(
            id=uid,
            email=email,
            name=str(data.get("name") or ""),
            role=str(data.get("role") or "USER"),
            image=str(image) if image else None,
        )


@dataclass
class Session:
    data: dict = field(default_factory=dict)

    @property
    def identity(self) -> Optional[Identity]:
        return Identity.from_payload(self.data.get(IDENTITY_KEY))

    @property
    def is_empty(self) -> bool:
        return self.identity is None

    def set(self, identity: Identity) -> None:
        self.data[IDENTITY_KEY] = asdict(identity)

    def clear(self) -> None:
        self.data.clear()


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=secret_key(), salt=get_settings().session_salt)


def _load(token: str) -> dict:
    if not token:
        return {}
    try:
        data = _serializer().loads(token, max_age=get_settings().session_max_age)
    except BadSignature:
        # Covers expired tokens too (SignatureExpired subclasses BadSignature).
        logger.debug("Discarding session cookie with bad or expired signature")
        return {}
    return data if isinstance(data, dict) else {}


def read(request: HTTPConnection) -> Session:
    """Session carried by ``request``; empty when missing or not trustworthy."""
    token = request.cookies.get(get_settings().cookie_name, "")
    return Session(data=_load(token))


def _cookie_args() -> dict:
    s = get_settings()
    return {"path": "/", "httponly": True, "samesite": "lax", "secure": s.cookie_secure}


def commit(session: Session) -> str:
    """Sign ``session`` and return the ``Set-Cookie`` header value carrying it."""
    token = _serializer().dumps(session.data)
    s = get_settings()
    response = Response()
    response.set_cookie(s.cookie_name, token, max_age=s.session_max_age, **_cookie_args())
    return response.headers["set-cookie"]


def destroy(session: Session) -> str:
    """Empty ``session`` and return a ``Set-Cookie`` value that expires the cookie."""
    session.clear()
    response = Response()
    response.delete_cookie(get_settings().cookie_name, **_cookie_args())
    return response.headers["set-cookie"]
