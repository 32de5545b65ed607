# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Provision users from a YAML file.

Format::

    users:
      alice@example.com:
        name: Alice
        role: admin
        password_hash: "$argon2id$..."   # or `password: ...` (hashed on load)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import yaml
from sqlalchemy.orm import Session

from inkwell.auth.users import EmailAlreadyUsed, create_user, find_user_by_email
from inkwell.models import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedUser:
    email: str
    name: str
    role: Role
    password: Optional[str] = None
    password_hash: Optional[str] = None
    bio: Optional[str] = None


def _role(raw) -> Role:
    value = str(raw or "user").strip().upper()
    try:
        return Role(value)
    except ValueError:
        raise ValueError(f"Unknown role '{raw}'") from None


def load_seed_file(path: Path) -> List[SeedUser]:
    if not path.exists():
        return []
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
    out: List[SeedUser] = []
    for email, udata in users.items():
        if not isinstance(udata, dict):
            continue
        email = str(email).strip()
        if not email:
            continue
        ph = str(udata.get("password_hash") or "").strip() or None
        pw = None if ph else (str(udata.get("password") or "") or None)
        if not ph and not pw:
            logger.warning("Seed user %s has no password, skipped", email)
            continue
        out.append(
            SeedUser(
                email=email,
                name=str(udata.get("name") or "").strip(),
                role=_role(udata.get("role")),
                password=pw,
                password_hash=ph,
                bio=udata.get("bio"),
            )
        )
    return out


def seed_users(db: Session, path: Path) -> int:
    """Insert users from ``path`` that do not exist yet. Returns how many were added."""
    added = 0
    for su in load_seed_file(path):
        if find_user_by_email(db, su.email) is not None:
            continue
        try:
            create_user(
                db,
                email=su.email,
                name=su.name,
                password=su.password,
                password_hash=su.password_hash,
                role=su.role,
                bio=su.bio,
            )
        except EmailAlreadyUsed:
            continue
        added += 1
    if added:
        logger.info("Seeded %d user(s) from %s", added, path)
    return added
