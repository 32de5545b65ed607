# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from inkwell.auth.session import Identity
from inkwell.forms import Submission


class Failure(str, enum.Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"


# HTTP status per failure kind; success is answered by the route itself.
STATUS_FOR = {
    Failure.VALIDATION: 400,
    Failure.AUTHENTICATION: 401,
    Failure.AUTHORIZATION: 403,
    Failure.NOT_FOUND: 404,
}


@dataclass(frozen=True)
class FlowResult:
    """What a form flow hands back to its route."""

    submission: Submission
    failure: Optional[Failure] = None
    identity: Optional[Identity] = None
    set_cookie: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def status_code(self) -> int:
        return 200 if self.failure is None else STATUS_FOR[self.failure]


def owner_check(
    identity: Optional[Identity],
    user_id: str,
    *,
    signed_out: str,
    not_owner: str,
) -> Optional[Tuple[Failure, str]]:
    """``(failure, message)`` when ``identity`` may not act on ``user_id``.

    Pure comparison, so it runs before any store access.
    """
    if identity is None:
        return Failure.AUTHENTICATION, signed_out
    if identity.id != str(user_id):
        return Failure.AUTHORIZATION, not_owner
    return None
