"""Tamper-evidence tokens for files.

Signs the SHA-256 digest of one file, or a manifest of digests for many
files, into a compact RS512 token, and verifies such tokens against the
files on disk.
"""

from __future__ import annotations

__version__ = "0.1.0"

from fileseal.claims import ManifestClaims, SingleFileClaims
from fileseal.clock import fixed_clock, system_clock
from fileseal.digest import compute_digest, deduplicate_paths, digest_file
from fileseal.errors import (
    ClaimError,
    DigestMismatchError,
    ParseError,
    ReadError,
    SealError,
    SignatureError,
    ValidationError,
)
from fileseal.signing import TokenSigner, sign, sign_file, sign_manifest
from fileseal.verifier import TokenVerifier, verify, verify_file, verify_manifest

__all__ = [
    "ManifestClaims",
    "SingleFileClaims",
    "fixed_clock",
    "system_clock",
    "compute_digest",
    "deduplicate_paths",
    "digest_file",
    "ClaimError",
    "DigestMismatchError",
    "ParseError",
    "ReadError",
    "SealError",
    "SignatureError",
    "ValidationError",
    "TokenSigner",
    "TokenVerifier",
    "sign",
    "sign_file",
    "sign_manifest",
    "verify",
    "verify_file",
    "verify_manifest",
]
