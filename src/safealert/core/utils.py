# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Any, Dict, Mapping

SECRET_FIELDS = {"password", "newPassword", "new_password"}


def email_key(email: str) -> str:
    """Canonicalise an email for identity comparisons (trim + lower)."""
    return (email or "").strip().lower()


def is_text(value: Any) -> bool:
    """A non-blank string; anything else (numbers, lists, query operators) is rejected."""
    return isinstance(value, str) and bool(value.strip())


def mask_secrets(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of a request body safe to log."""
    return {k: ("***" if k in SECRET_FIELDS else v) for k, v in (payload or {}).items()}
