# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy.orm import Session as DbSession

from inkwell.auth import session as sessions
from inkwell.auth.session import Identity, Session
from inkwell.auth.users import EmailAlreadyUsed, find_user_by_email, find_user_by_id, update_user_profile
from inkwell.forms import ProfileForm, validate
from inkwell.services.results import Failure, FlowResult, owner_check

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileView:
    id: str
    name: str
    email: str
    image: Optional[str]
    bio: Optional[str]

    def as_form(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "image": self.image or "",
            "bio": self.bio or "",
        }


def get_profile(db: DbSession, user_id: str) -> Optional[ProfileView]:
    user = find_user_by_id(db, user_id)
    if user is None:
        return None
    return ProfileView(
        id=user.id,
        name=user.name or "",
        email=user.email,
        image=user.image,
        bio=user.profile.bio if user.profile else None,
    )


def update_profile(
    db: DbSession,
    *,
    session: Session,
    user_id: str,
    data: Mapping[str, str],
) -> FlowResult:
    """Apply the profile form for ``user_id`` and refresh the caller's session.

    The session identity carries name/email/image, so a successful update
    re-issues the cookie with the new values.
    """
    submission = validate(ProfileForm, data)
    identity = session.identity

    denied = owner_check(
        identity,
        user_id,
        signed_out="You must be signed in to update your profile",
        not_owner="You can only update your own profile",
    )
    if denied:
        failure, message = denied
        logger.warning("Profile update for %s denied: %s", user_id, failure.value)
        return FlowResult(submission.with_errors({"userId": [message]}), failure)

    if not submission.ok:
        return FlowResult(submission, Failure.VALIDATION)

    form = submission.value
    other = find_user_by_email(db, form.email)
    if other is not None and other.id != user_id:
        return FlowResult(
            submission.with_errors({"email": ["Email is already in use"]}),
            Failure.VALIDATION,
        )

    try:
        user = update_user_profile(
            db,
            user_id,
            name=form.name,
            email=form.email,
            image=form.image,
            bio=form.bio,
        )
    except EmailAlreadyUsed:
        return FlowResult(
            submission.with_errors({"email": ["Email is already in use"]}),
            Failure.VALIDATION,
        )
    if user is None:
        return FlowResult(submission.with_errors({"form": ["User not found"]}), Failure.NOT_FOUND)

    fresh = Identity.from_user(user)
    session.set(fresh)
    logger.info("Profile updated for user %s", user_id)
    return FlowResult(submission, identity=fresh, set_cookie=sessions.commit(session))
