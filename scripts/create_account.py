#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from pymongo import MongoClient

from safealert.auth.passwords import PasswordCodec
from safealert.config import get_settings
from safealert.core.mapping import meta_for_kind
from safealert.errors import AccountError
from safealert.infra.account_store import MongoAccountStore
from safealert.services.account_service import AccountService


def main() -> None:
    settings = get_settings()
    kind = (input("Kind [user/admin]: ").strip().lower() or "user")
    meta = meta_for_kind(kind)
    if not meta:
        raise SystemExit(f"Unknown account kind: {kind}")

    fields = {name: input(f"{name}: ").strip() for name in meta["required"]}

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    client = MongoClient(settings.mongo_uri)
    try:
        store = MongoAccountStore(client[settings.db_name])
        store.ensure_indexes()
        accounts = AccountService(store, PasswordCodec.from_settings(settings))
        account = accounts.register(kind, fields, pw1)
    except AccountError as e:
        raise SystemExit(f"ERROR -> {e.message}")
    finally:
        client.close()
    print(f"OK -> {meta['label']} {account.email}")


if __name__ == "__main__":
    main()
