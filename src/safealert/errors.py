# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by services and the HTTP layer.

Every error carries the HTTP status it maps to, so routes only need a single
exception handler. Internal errors (encoding/store) are not meant to leak
their message to the caller.
"""

from __future__ import annotations


class AccountError(Exception):
    status_code = 500
    internal = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    status_code = 400


class ConflictError(AccountError):
    # Existing clients expect 400 for duplicate registrations.
    status_code = 400


class NotFoundError(AccountError):
    status_code = 404


class AuthenticationError(AccountError):
    status_code = 401


class EncodingError(AccountError):
    status_code = 500
    internal = True


class StoreError(AccountError):
    status_code = 500
    internal = True
