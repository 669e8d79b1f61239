# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from safealert.auth.passwords import LegacySecret, PasswordCodec
from safealert.core.mapping import RESERVED_FIELDS, meta_for_kind
from safealert.core.models import Account
from safealert.core.utils import is_text
from safealert.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from safealert.infra.account_store import AccountStore

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Missing required fields"


class AccountService:
    """Registration, login and profile updates for users and admins.

    Both collaborators are injected: the store owns persistence (and the
    uniqueness guarantee), the codec owns password hashing.
    """

    def __init__(self, store: AccountStore, codec: PasswordCodec) -> None:
        self.store = store
        self.codec = codec

    @staticmethod
    def _meta(kind: str) -> Dict[str, Any]:
        meta = meta_for_kind(kind)
        if not meta:
            raise ValidationError(f"Unknown account kind '{kind}'")
        return meta

    def _identity(self, kind: str, email: Optional[str], admin_type: Optional[str]) -> Tuple[str, Optional[str]]:
        meta = self._meta(kind)
        if not is_text(email):
            raise ValidationError(MISSING_FIELDS)
        if meta["discriminator"]:
            if not is_text(admin_type):
                raise ValidationError(MISSING_FIELDS)
        else:
            admin_type = None
        return str(email), admin_type

    def _not_found(self, kind: str) -> NotFoundError:
        return NotFoundError(f"{self._meta(kind)['label']} not found")

    def resolve(self, kind: str, email: Optional[str], admin_type: Optional[str] = None) -> Account:
        """Find the single account for (email[, admin_type]); email ignores case and outer spaces."""
        email, admin_type = self._identity(kind, email, admin_type)
        doc = self.store.find_one(kind, email, admin_type)
        if doc is None:
            logger.info("%s not found for email: %s, admin_type: %s", self._meta(kind)["label"], email, admin_type)
            raise self._not_found(kind)
        return Account.from_document(kind, doc)

    def register(self, kind: str, fields: Dict[str, Any], password: Optional[str]) -> Account:
        meta = self._meta(kind)
        fields = dict(fields or {})
        if not is_text(password) or not all(is_text(fields.get(name)) for name in meta["required"]):
            raise ValidationError(MISSING_FIELDS)

        email = str(fields["email"]).strip()
        admin_type = fields.get(meta["discriminator"]) if meta["discriminator"] else None
        if self.store.find_one(kind, email, admin_type) is not None:
            raise ConflictError(meta["conflict_message"])

        profile = {k: v for k, v in fields.items() if k not in RESERVED_FIELDS and k not in ("email", "image")}
        account = Account(
            kind=kind,
            email=email,
            password=self.codec.encode(password),
            profile=profile,
            image=fields.get("image"),
        )
        self.store.insert(kind, account.to_document())
        logger.info("Registered %s: %s", kind, email)
        return account

    def login(
        self,
        kind: str,
        email: Optional[str],
        password: Optional[str],
        admin_type: Optional[str] = None,
    ) -> Account:
        if not is_text(password):
            raise ValidationError(MISSING_FIELDS)
        account = self.resolve(kind, email, admin_type)

        if isinstance(account.password, LegacySecret):
            logger.warning("Plaintext password detected for %s %s. Please update to hashed password.", kind, email)

        if not self.codec.verify(password, account.password):
            logger.info("Invalid password for %s: %s", kind, email)
            raise AuthenticationError("Invalid password")

        logger.info("Login successful for %s: %s", kind, email)
        return account

    def change_password(
        self,
        kind: str,
        email: Optional[str],
        new_password: Optional[str],
        admin_type: Optional[str] = None,
    ) -> Account:
        """Store a fresh hash for the account. Legacy plaintext records are migrated here."""
        email, admin_type = self._identity(kind, email, admin_type)
        if not is_text(new_password):
            raise ValidationError(MISSING_FIELDS)
        hashed = self.codec.encode(new_password)
        doc = self.store.update_one(kind, email, admin_type, {"password": hashed.serialize()})
        if doc is None:
            raise self._not_found(kind)
        return Account.from_document(kind, doc)

    def set_profile_image(
        self,
        kind: str,
        email: Optional[str],
        image_ref: Optional[str],
        admin_type: Optional[str] = None,
    ) -> Account:
        email, admin_type = self._identity(kind, email, admin_type)
        doc = self.store.update_one(kind, email, admin_type, {"image": image_ref or None})
        if doc is None:
            raise self._not_found(kind)
        return Account.from_document(kind, doc)

    def fetch(self, kind: str, email: Optional[str], admin_type: Optional[str] = None) -> Account:
        return self.resolve(kind, email, admin_type)
