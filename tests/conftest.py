import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import copy
from pathlib import Path
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from safealert.app import create_app
from safealert.auth.passwords import PasswordCodec
from safealert.config import get_settings
from safealert.infra.account_store import MongoAccountStore
from safealert.infra.image_store import DiskImageStorage
from safealert.services.account_service import AccountService


def _matches(doc: dict, flt: dict) -> bool:
    for key, expected in flt.items():
        if isinstance(expected, dict) and "$exists" in expected:
            if (key in doc) != bool(expected["$exists"]):
                return False
        elif doc.get(key) != expected:
            return False
    return True


class FakeCollection:
    """
    Just enough of pymongo's Collection for the account store:
    equality/$exists filters, $set updates and unique (optionally partial) indexes.
    """

    def __init__(self, name: str):
        self.name = name
        self.docs = []
        self.indexes = []

    def create_index(self, keys, unique=False, name=None, partialFilterExpression=None):
        idx = {"fields": [k for k, _ in keys], "unique": unique, "name": name, "partial": partialFilterExpression or {}}
        if unique:
            # Like the server, refuse to build a unique index over existing duplicates.
            seen = set()
            for doc in self.docs:
                if not _matches(doc, idx["partial"]):
                    continue
                key = tuple(doc.get(f) for f in idx["fields"])
                if key in seen:
                    raise DuplicateKeyError("E11000 duplicate key error collection index build", 11000)
                seen.add(key)
        self.indexes.append(idx)
        return name

    def _check_unique(self, candidate: dict, ignore=None):
        for idx in self.indexes:
            if not idx["unique"] or not _matches(candidate, idx["partial"]):
                continue
            key = tuple(candidate.get(f) for f in idx["fields"])
            for other in self.docs:
                if other is ignore or not _matches(other, idx["partial"]):
                    continue
                if tuple(other.get(f) for f in idx["fields"]) == key:
                    raise DuplicateKeyError("E11000 duplicate key error", 11000)

    def insert_one(self, doc: dict):
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, flt=None):
        return [copy.deepcopy(d) for d in self.docs if _matches(d, flt or {})]

    def find_one(self, flt=None):
        hits = self.find(flt)
        return hits[0] if hits else None

    def _apply(self, flt: dict, update: dict):
        for doc in self.docs:
            if _matches(doc, flt):
                candidate = {**doc, **update.get("$set", {})}
                self._check_unique(candidate, ignore=doc)
                doc.update(update.get("$set", {}))
                return doc
        return None

    def update_one(self, flt, update):
        doc = self._apply(flt, update)
        return SimpleNamespace(matched_count=int(doc is not None))

    def find_one_and_update(self, flt, update, return_document=ReturnDocument.BEFORE):
        before = self.find_one(flt)
        doc = self._apply(flt, update)
        if doc is None:
            return None
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))


@pytest.fixture()
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def store(db) -> MongoAccountStore:
    s = MongoAccountStore(db)
    s.ensure_indexes()
    return s


@pytest.fixture()
def codec() -> PasswordCodec:
    # Minimal argon2 cost keeps the suite fast.
    return PasswordCodec(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture()
def accounts(store, codec) -> AccountService:
    return AccountService(store, codec)


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SAFEALERT_UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("SAFEALERT_PUBLIC_DIR", str(tmp_path / "public"))
    return get_settings()


@pytest.fixture()
def client(settings, store, codec) -> TestClient:
    app = create_app(settings, store=store, codec=codec, images=DiskImageStorage(settings.uploads_dir))
    return TestClient(app)


@pytest.fixture()
def user_fields() -> dict:
    return {
        "email": "u@x.com",
        "username": "u",
        "first_name": "A",
        "last_name": "B",
        "country": "BD",
    }


@pytest.fixture()
def admin_fields() -> dict:
    return {
        "email": "boss@x.com",
        "username": "boss",
        "admin_type": "police",
        "country": "BD",
        "thana": "Gulshan",
    }
