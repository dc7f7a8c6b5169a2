"""SHA-256 content digests and path-list helpers."""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable
from pathlib import Path

from fileseal.errors import ClaimError
from fileseal.security import SecurityLimits, safe_read_file

DIGEST_SIZE = 32
DIGEST_HEX_LENGTH = DIGEST_SIZE * 2


def compute_digest(data: bytes) -> bytes:
    """Return the 32-byte SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


def digest_file(path: str | Path, limits: SecurityLimits | None = None) -> bytes:
    """Read the whole file at ``path`` and return its digest.

    Raises:
        ReadError: If the file cannot be read
    """
    return compute_digest(safe_read_file(path, limits))


def digest_hex(digest: bytes) -> str:
    """Encode a digest as 64 lowercase hex characters."""
    return digest.hex()


def decode_digest(value: object) -> bytes:
    """Decode a hex digest claim, requiring exactly 32 bytes.

    Raises:
        ClaimError: If the value is not a hex string of the right length
    """
    if not isinstance(value, str):
        raise ClaimError("Digest must be a hex string", claim="digest")
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        raise ClaimError(f"Digest is not valid hex: {e}", claim="digest") from e
    # fromhex tolerates whitespace, so check the encoded length as well
    if len(raw) != DIGEST_SIZE or len(value) != DIGEST_HEX_LENGTH:
        raise ClaimError(
            f"Did not decode expected number of bytes from hex digest string "
            f"(got {len(raw)}, want {DIGEST_SIZE})",
            claim="digest",
        )
    return raw


def digests_equal(a: bytes, b: bytes) -> bool:
    """Compare two digests in constant time."""
    return hmac.compare_digest(a, b)


def deduplicate_paths(paths: Iterable[str]) -> list[str]:
    """Drop repeated paths, keeping the first occurrence of each in order."""
    return list(dict.fromkeys(paths))
