# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Inkwell: a server-rendered blog site (accounts, profiles, passwords)."""

__version__ = "0.1.0"
