# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential helpers.

This package provides:
- Parsing of stored password forms (legacy plaintext vs. hashed)
- Password hashing/verification (argon2, with bcrypt read support)
"""
