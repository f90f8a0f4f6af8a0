"""Tests for content hashing."""
import hashlib

from docvault.hashing import HASH_HEX_LENGTH, hash_bytes, hash_text, random_hex, verify_hash


def test_hash_is_sha256_hex():
    assert hash_bytes(b"hello-test") == hashlib.sha256(b"hello-test").hexdigest()


def test_hash_fixed_length_for_any_input():
    for data in (b"", b"x", b"x" * 1_000_000):
        digest = hash_bytes(data)
        assert len(digest) == HASH_HEX_LENGTH
        assert digest == digest.lower()


def test_hash_stable_and_distinct():
    assert hash_bytes(b"abc") == hash_bytes(b"abc")
    assert hash_bytes(b"abc") != hash_bytes(b"abd")


def test_hash_text_uses_utf8():
    assert hash_text("héllo") == hash_bytes("héllo".encode("utf-8"))


def test_verify_hash_case_insensitive():
    digest = hash_bytes(b"document")
    assert verify_hash(b"document", digest.upper())
    assert not verify_hash(b"tampered", digest)
    assert not verify_hash(b"document", "")


def test_random_hex_length():
    assert len(random_hex(32)) == 64
    assert random_hex() != random_hex()
