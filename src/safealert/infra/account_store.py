# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""MongoDB persistence for user and admin accounts.

Uniqueness of (email_key) for users and (email_key, admin_type) for admins is
enforced by unique indexes, so concurrent duplicate registrations are rejected
by the database rather than by the service's existence check.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol

from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from safealert.core.mapping import ACCOUNT_KINDS, meta_for_kind
from safealert.core.utils import email_key
from safealert.errors import ConflictError, StoreError, ValidationError

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    """
    Persistence abstraction for accounts.

    Filters are always (email, admin_type): email matched case-insensitively,
    admin_type matched exactly and only for kinds that have a discriminator.
    """

    def find_one(self, kind: str, email: str, admin_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ...

    def insert(self, kind: str, document: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_one(
        self,
        kind: str,
        email: str,
        admin_type: Optional[str],
        patch: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        ...


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as e:
        logger.error("MongoDB error while %s: %s", action, e)
        raise StoreError(f"Store failure while {action}") from e


class MongoAccountStore(AccountStore):
    """pymongo-backed implementation of `AccountStore`."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _collection(self, kind: str) -> Collection:
        meta = meta_for_kind(kind)
        if not meta:
            raise ValidationError(f"Unknown account kind '{kind}'")
        return self._db[meta["collection"]]

    @staticmethod
    def _filter(kind: str, email: str, admin_type: Optional[str]) -> Dict[str, Any]:
        flt: Dict[str, Any] = {"email_key": email_key(email)}
        disc = meta_for_kind(kind)["discriminator"]
        if disc:
            flt[disc] = admin_type
        return flt

    def ensure_indexes(self) -> None:
        """Create the unique indexes, then backfill identity keys on older documents.

        The index exists before any key is written, so case-variant duplicates left
        by the previous backend are rejected one by one instead of blocking the index.
        """
        for kind, meta in ACCOUNT_KINDS.items():
            coll = self._collection(kind)
            with _store_errors(f"preparing '{meta['collection']}'"):
                keys = [("email_key", ASCENDING)]
                if meta["discriminator"]:
                    keys.append((meta["discriminator"], ASCENDING))
                coll.create_index(
                    keys,
                    unique=True,
                    name=f"uniq_{meta['collection']}_identity",
                    partialFilterExpression={"email_key": {"$exists": True}},
                )
                self._backfill_email_keys(coll)

    def _backfill_email_keys(self, coll: Collection) -> None:
        # Documents written by the previous backend have no email_key.
        for doc in coll.find({"email_key": {"$exists": False}}):
            try:
                coll.update_one({"_id": doc["_id"]}, {"$set": {"email_key": email_key(doc.get("email", ""))}})
            except DuplicateKeyError:
                logger.error(
                    "Duplicate identity for %r in '%s'; document %s left without email_key",
                    doc.get("email"),
                    coll.name,
                    doc["_id"],
                )

    def find_one(self, kind: str, email: str, admin_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
        coll = self._collection(kind)
        with _store_errors("reading account"):
            return coll.find_one(self._filter(kind, email, admin_type))

    def insert(self, kind: str, document: Dict[str, Any]) -> Dict[str, Any]:
        coll = self._collection(kind)
        doc = dict(document)
        doc["email_key"] = email_key(doc.get("email", ""))
        try:
            coll.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError(meta_for_kind(kind)["conflict_message"]) from e
        except PyMongoError as e:
            logger.error("MongoDB error while inserting account: %s", e)
            raise StoreError("Store failure while inserting account") from e
        return doc

    def update_one(
        self,
        kind: str,
        email: str,
        admin_type: Optional[str],
        patch: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        coll = self._collection(kind)
        with _store_errors("updating account"):
            return coll.find_one_and_update(
                self._filter(kind, email, admin_type),
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
