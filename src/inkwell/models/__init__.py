# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from .user import Profile, Role, User

__all__ = [
    "Profile",
    "Role",
    "User",
]
