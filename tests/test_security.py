from __future__ import annotations

import re

from fotofocus.core import security


def test_password_hash_roundtrip_uses_prefix():
    hashed = security.hash_password("hunter22")

    assert hashed.startswith("argon2$")
    assert security.verify_password("hunter22", hashed) is True
    assert security.verify_password("hunter23", hashed) is False
    assert security.password_needs_rehash(hashed) is False


def test_verify_rejects_foreign_or_missing_hashes():
    assert security.verify_password("x", None) is False
    assert security.verify_password("x", "$2b$10$abcdefghijklmnopqrstuv") is False
    assert security.password_needs_rehash("plain") is True


def test_generate_code_is_six_digits():
    for _ in range(200):
        assert re.fullmatch(r"[1-9][0-9]{5}", security.generate_code())


def test_reset_token_has_256_bits_of_entropy():
    token = security.generate_reset_token()
    assert re.fullmatch(r"[0-9a-f]{64}", token)
    assert token != security.generate_reset_token()


def test_digest_helpers():
    digest = security.sha256_hex("123456")
    assert len(digest) == 64
    assert security.digests_match(digest, security.sha256_hex("123456"))
    assert not security.digests_match(digest, security.sha256_hex("654321"))
    assert not security.digests_match(digest, None)
