# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication and credential management.

This package provides:
- Password hashing/verification (argon2)
- User lookups and credential updates (SQLAlchemy)
- Signed session cookies (itsdangerous)
- The sign-in / current-caller orchestration (Authenticator)
"""
