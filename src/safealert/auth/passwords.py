# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Stored password forms and the codec that produces/verifies them.

A stored password is either a :class:`LegacySecret` (plaintext written by the
old backend) or a :class:`HashedSecret`. New hashes are argon2id; bcrypt hashes
left by the previous backend are still recognised and verified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from safealert.errors import EncodingError, ValidationError

logger = logging.getLogger(__name__)

ARGON2_MARKER = "$argon2"
BCRYPT_MARKERS = ("$2a$", "$2b$", "$2y$")
BCRYPT_MAX_BYTES = 72

MAX_PASSWORD_LENGTH = 4096


@dataclass(frozen=True)
class LegacySecret:
    value: str

    def serialize(self) -> str:
        return self.value


@dataclass(frozen=True)
class HashedSecret:
    encoded: str

    @property
    def scheme(self) -> str:
        return "bcrypt" if self.encoded.startswith(BCRYPT_MARKERS) else "argon2"

    def serialize(self) -> str:
        return self.encoded


StoredSecret = Union[LegacySecret, HashedSecret]


def parse_stored(raw: Optional[str]) -> StoredSecret:
    """Classify a raw password field by its marker."""
    s = raw or ""
    if s.startswith(ARGON2_MARKER) or s.startswith(BCRYPT_MARKERS):
        return HashedSecret(s)
    return LegacySecret(s)


class PasswordCodec:
    def __init__(self, *, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4) -> None:
        self._ph = PasswordHasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)

    @classmethod
    def from_settings(cls, settings) -> "PasswordCodec":
        return cls(
            time_cost=settings.hash_time_cost,
            memory_cost=settings.hash_memory_cost,
            parallelism=settings.hash_parallelism,
        )

    def encode(self, plain: str) -> HashedSecret:
        plain = plain or ""
        if not isinstance(plain, str):
            raise ValidationError("Password must be a string")
        if len(plain) > MAX_PASSWORD_LENGTH:
            raise ValidationError("Password too long")
        try:
            return HashedSecret(self._ph.hash(plain))
        except HashingError as e:
            raise EncodingError("Could not hash password") from e

    def verify(self, plain: str, stored: Union[StoredSecret, str, None]) -> bool:
        """Check ``plain`` against a stored form. Never modifies the stored value."""
        if not isinstance(stored, (LegacySecret, HashedSecret)):
            stored = parse_stored(stored)
        plain = plain or ""

        if isinstance(stored, LegacySecret):
            return plain.strip() == stored.value.strip()

        if stored.scheme == "bcrypt":
            try:
                # Compared as the previous backend did: trimmed, cut at bcrypt's 72-byte limit.
                candidate = plain.strip().encode("utf-8")[:BCRYPT_MAX_BYTES]
                return bcrypt.checkpw(candidate, stored.encoded.encode("utf-8"))
            except ValueError:
                logger.warning("Unreadable bcrypt hash; treating as mismatch")
                return False

        try:
            return self._ph.verify(stored.encoded, plain)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            logger.warning("Unreadable argon2 hash; treating as mismatch")
            return False

    def needs_upgrade(self, stored: Union[StoredSecret, str, None]) -> bool:
        """True when the stored form is not a current-parameter argon2 hash."""
        if not isinstance(stored, (LegacySecret, HashedSecret)):
            stored = parse_stored(stored)
        if isinstance(stored, LegacySecret) or stored.scheme == "bcrypt":
            return True
        try:
            return self._ph.check_needs_rehash(stored.encoded)
        except (InvalidHashError, ValueError):
            return True
