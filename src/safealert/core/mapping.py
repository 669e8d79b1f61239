# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Mapping between account kinds and their collections/fields.

Centralising this keeps the store, the services and the routes kind-agnostic.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


ACCOUNT_KINDS: Dict[str, Dict[str, Any]] = {
    "user": {
        "label": "User",
        "collection": "users",
        "required": ("email", "username", "first_name", "last_name", "country"),
        "discriminator": None,
        "conflict_message": "Email already registered",
    },
    "admin": {
        "label": "Admin",
        "collection": "admins",
        "required": ("email", "username", "admin_type", "country", "thana"),
        "discriminator": "admin_type",
        "conflict_message": "Admin already registered for this email and type",
    },
}

# Fields a caller can never set directly through profile data.
RESERVED_FIELDS = ("_id", "email_key", "password")


def meta_for_kind(kind: str) -> Optional[Dict[str, Any]]:
    """Return metadata for an account kind ('user' or 'admin')."""
    return ACCOUNT_KINDS.get(str(kind or "").strip().lower())
