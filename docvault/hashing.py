"""Content hashing for uploaded documents.

The content hash is the application-level fingerprint of the raw bytes. It is
independent of the CID the content store assigns and is the primary key used
for deduplication and verification.
"""
import hashlib
import hmac
import secrets

HASH_HEX_LENGTH = 64


def hash_bytes(data: bytes) -> str:
    """Return the SHA-256 digest of ``data`` as 64 lowercase hex characters."""
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    """Hash a string using its UTF-8 encoding."""
    return hash_bytes(text.encode("utf-8"))


def verify_hash(data: bytes, expected: str) -> bool:
    """Check ``data`` against a previously computed digest.

    Comparison is case-insensitive and constant-time.
    """
    if not expected:
        return False
    return hmac.compare_digest(hash_bytes(data), expected.lower())


def random_hex(num_bytes: int = 32) -> str:
    """Random hex string, used for placeholder ledger identifiers."""
    return secrets.token_hex(num_bytes)
