# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from safealert.auth.passwords import StoredSecret, parse_stored
from safealert.core.utils import email_key


@dataclass
class Account:
    """A user or admin record as held by the account store.

    ``profile`` carries every opaque profile attribute (username, names,
    admin_type, country, thana, ...). ``email`` keeps the caller's spelling;
    identity comparisons go through :func:`email_key`.
    """

    kind: str
    email: str
    password: StoredSecret
    profile: Dict[str, Any] = field(default_factory=dict)
    image: Optional[str] = None

    @property
    def admin_type(self) -> Optional[str]:
        return self.profile.get("admin_type")

    @classmethod
    def from_document(cls, kind: str, doc: Dict[str, Any]) -> "Account":
        profile = {
            k: v for k, v in doc.items() if k not in ("_id", "email", "email_key", "password", "image")
        }
        return cls(
            kind=kind,
            email=str(doc.get("email") or ""),
            password=parse_stored(doc.get("password")),
            profile=profile,
            image=doc.get("image"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            **self.profile,
            "email": self.email,
            "email_key": email_key(self.email),
            "password": self.password.serialize(),
            "image": self.image,
        }

    def public(self) -> Dict[str, Any]:
        """Representation safe to return to callers (never includes the password)."""
        return {**self.profile, "email": self.email, "image": self.image}
