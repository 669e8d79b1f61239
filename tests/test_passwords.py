import bcrypt
import pytest

from safealert.auth.passwords import (
    MAX_PASSWORD_LENGTH,
    HashedSecret,
    LegacySecret,
    parse_stored,
)
from safealert.errors import ValidationError


@pytest.mark.parametrize("plain", ["pw123", "", "  padded  ", "ñandú-🔑", "x" * MAX_PASSWORD_LENGTH])
def test_encoded_password_verifies(codec, plain):
    stored = codec.encode(plain)
    assert isinstance(stored, HashedSecret)
    assert stored.serialize().startswith("$argon2")
    assert codec.verify(plain, stored)


def test_encoded_password_rejects_other_plaintext(codec):
    stored = codec.encode("pw123")
    assert not codec.verify("pw124", stored)
    assert not codec.verify("", stored)


def test_encode_uses_fresh_salt(codec):
    a = codec.encode("same")
    b = codec.encode("same")
    assert a.serialize() != b.serialize()
    assert codec.verify("same", a) and codec.verify("same", b)


def test_encode_rejects_oversized_input(codec):
    with pytest.raises(ValidationError):
        codec.encode("x" * (MAX_PASSWORD_LENGTH + 1))


def test_legacy_plaintext_compares_trimmed(codec):
    stored = parse_stored(" pw123 ")
    assert isinstance(stored, LegacySecret)
    assert codec.verify("pw123", stored)
    assert codec.verify("  pw123\n", " pw123 ")
    assert not codec.verify("pw1234", stored)
    assert not codec.verify("PW123", stored)


def test_bcrypt_hash_from_previous_backend_verifies(codec):
    raw = bcrypt.hashpw(b"pw123", bcrypt.gensalt(rounds=4)).decode("utf-8")
    stored = parse_stored(raw)
    assert isinstance(stored, HashedSecret)
    assert stored.scheme == "bcrypt"
    assert codec.verify("pw123", raw)
    assert not codec.verify("nope", raw)


def test_unreadable_hash_is_a_mismatch(codec):
    assert not codec.verify("pw123", "$argon2id$v=19$garbage")


def test_parse_stored_sniffs_markers():
    assert isinstance(parse_stored("$argon2id$v=19$m=8,t=1,p=1$abc$def"), HashedSecret)
    assert isinstance(parse_stored("$2b$10$abcdefghijklmnopqrstuv"), HashedSecret)
    assert parse_stored("plain") == LegacySecret("plain")
    assert parse_stored(None) == LegacySecret("")


def test_needs_upgrade(codec):
    assert codec.needs_upgrade("plaintext")
    assert codec.needs_upgrade(bcrypt.hashpw(b"pw", bcrypt.gensalt(rounds=4)).decode("utf-8"))
    assert not codec.needs_upgrade(codec.encode("pw"))


def test_bcrypt_path_trims_like_previous_backend(codec):
    raw = bcrypt.hashpw(b"pw123", bcrypt.gensalt(rounds=4)).decode("utf-8")
    assert codec.verify("pw123 ", raw)
    assert codec.verify("\tpw123", raw)


def test_bcrypt_path_truncates_at_72_bytes(codec):
    long_pw = "x" * 80
    raw = bcrypt.hashpw(long_pw.encode("utf-8")[:72], bcrypt.gensalt(rounds=4)).decode("utf-8")
    assert codec.verify(long_pw, raw)
    assert not codec.verify("y" * 80, raw)


def test_argon2_path_stays_exact(codec):
    assert not codec.verify("pw123 ", codec.encode("pw123"))


def test_encode_rejects_non_string(codec):
    with pytest.raises(ValidationError):
        codec.encode(12345)
