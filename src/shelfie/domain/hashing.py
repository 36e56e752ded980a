"""Content digests used as the de-duplication identity of import payloads."""

from __future__ import annotations

import hashlib
from typing import Final

DIGEST_SIZE: Final[int] = 32


def payload_bytes(payload: bytes | str) -> bytes:
    """Return the raw bytes of ``payload`` (text is UTF-8 encoded)."""

    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


def compute_digest(payload: bytes | str) -> bytes:
    """Return the SHA-256 digest of the raw payload bytes.

    The hash covers bytes, not meaning: two payloads that differ only in
    whitespace or key order produce different digests.
    """

    return hashlib.sha256(payload_bytes(payload)).digest()


def digest_hex(digest: bytes, *, length: int = 12) -> str:
    """Short hex rendering for log lines."""

    return digest.hex()[:length]
