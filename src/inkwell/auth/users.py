# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""User store: lookups and single-row updates over the ``users`` table."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from inkwell.auth.passwords import hash_password
from inkwell.models import Profile, Role, User


class EmailAlreadyUsed(Exception):
    """Another account already owns the requested email."""


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    # Exact match: the unique index is case-sensitive.
    if not email:
        return None
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def find_user_by_id(db: Session, user_id: str) -> Optional[User]:
    if not user_id:
        return None
    return db.get(User, user_id)


def create_user(
    db: Session,
    *,
    email: str,
    name: str,
    password: Optional[str] = None,
    password_hash: Optional[str] = None,
    role: Role = Role.USER,
    image: Optional[str] = None,
    bio: Optional[str] = None,
) -> User:
    """Insert a user with its (empty) profile. Exactly one of the password args is required."""
    if (password is None) == (password_hash is None):
        raise ValueError("Pass either password or password_hash")
    digest = password_hash if password_hash is not None else hash_password(password)
    user = User(
        email=email,
        name=name,
        password_hash=digest,
        role=role,
        image=image,
        profile=Profile(bio=bio),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise EmailAlreadyUsed(email) from e
    db.refresh(user)
    return user


def update_user_password(
    db: Session,
    user_id: str,
    new_hash: str,
    *,
    expected_hash: Optional[str] = None,
) -> bool:
    """Replace the stored hash in one UPDATE statement.

    With ``expected_hash`` the update only applies if the row still holds that
    hash (compare-and-swap). Returns whether a row was changed.
    """
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(password_hash=new_hash, updated_at=func.now())
    )
    if expected_hash is not None:
        stmt = stmt.where(User.password_hash == expected_hash)
    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    db.expire_all()
    return result.rowcount == 1


def update_user_profile(
    db: Session,
    user_id: str,
    *,
    name: str,
    email: str,
    image: Optional[str],
    bio: Optional[str],
) -> Optional[User]:
    """Update name/email/image and the profile bio. ``None`` if the user is gone."""
    user = find_user_by_id(db, user_id)
    if user is None:
        return None
    user.name = name
    user.email = email
    user.image = image
    if user.profile is None:
        user.profile = Profile(bio=bio)
    else:
        user.profile.bio = bio
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise EmailAlreadyUsed(email) from e
    db.refresh(user)
    return user
