# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Password change: re-verify the current credential, then rotate the hash."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from sqlalchemy.orm import Session as DbSession

from inkwell.auth.passwords import hash_password, verify_password
from inkwell.auth.session import Identity
from inkwell.auth.users import find_user_by_id, update_user_password
from inkwell.forms import PasswordChangeForm, Submission, validate
from inkwell.services.results import Failure, FlowResult, owner_check

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
CURRENT_PASSWORD_INCORRECT = "Current password is incorrect"


def change_password(
    db: DbSession,
    *,
    identity: Optional[Identity],
    user_id: str,
    data: Mapping[str, str],
) -> FlowResult:
    """Change ``user_id``'s password on behalf of the signed-in ``identity``.

    Steps: ownership check, form validation, load stored hash, verify the
    current password, then a compare-and-swap UPDATE of the hash. If another
    request rotated the hash between our read and our write, the swap misses
    and this request fails as if the current password were wrong.
    """
    submission: Submission[PasswordChangeForm] = validate(PasswordChangeForm, data)

    denied = owner_check(
        identity,
        user_id,
        signed_out="You must be signed in to change your password",
        not_owner="You can only change your own password",
    )
    if denied:
        failure, message = denied
        logger.warning("Password change for %s denied: %s", user_id, failure.value)
        return FlowResult(submission.with_errors({"userId": [message]}), failure)

    if not submission.ok:
        return FlowResult(submission, Failure.VALIDATION)

    form = submission.value
    user = find_user_by_id(db, user_id)
    if user is None:
        return FlowResult(submission.with_errors({"form": [USER_NOT_FOUND]}), Failure.NOT_FOUND)

    stored_hash = user.password_hash
    if not verify_password(stored_hash, form.current_password):
        logger.info("Password change for %s rejected: current password mismatch", user_id)
        return FlowResult(
            submission.with_errors({"currentPassword": [CURRENT_PASSWORD_INCORRECT]}),
            Failure.VALIDATION,
        )

    new_hash = hash_password(form.new_password)
    if not update_user_password(db, user_id, new_hash, expected_hash=stored_hash):
        if find_user_by_id(db, user_id) is None:
            return FlowResult(submission.with_errors({"form": [USER_NOT_FOUND]}), Failure.NOT_FOUND)
        logger.warning("Password change for %s lost a race with a concurrent change", user_id)
        return FlowResult(
            submission.with_errors({"currentPassword": [CURRENT_PASSWORD_INCORRECT]}),
            Failure.VALIDATION,
        )

    logger.info("Password changed for user %s", user_id)
    return FlowResult(submission, identity=identity)
