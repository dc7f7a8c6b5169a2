"""Claim sets carried inside signed tokens.

A claim set is one of two shapes sharing the registered fields
(``iss``, ``iat`` and optionally ``nbf``/``exp``):

- SingleFileClaims: one ``sub`` and its ``digest``
- ManifestClaims: a ``manifest`` mapping of path -> digest

Payload keys are emitted in a fixed order (iss, sub, exp, nbf, iat, then
the digest claims) so that identical inputs always serialize to identical
bytes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fileseal.digest import decode_digest
from fileseal.errors import ClaimError, ParseError

NumericDate = int | float


def _numeric_date(payload: Mapping[str, Any], name: str) -> NumericDate | None:
    value = payload.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"Claim '{name}' must be a number, got {type(value).__name__}")
    return value


def _string(payload: Mapping[str, Any], name: str) -> str | None:
    value = payload.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParseError(f"Claim '{name}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Claims:
    """Registered claims shared by both token shapes."""

    issuer: str | None
    issued_at: NumericDate | None
    not_before: NumericDate | None = field(default=None, kw_only=True)
    expires_at: NumericDate | None = field(default=None, kw_only=True)

    def _registered(self, subject: str | None = None) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.issuer:
            result["iss"] = self.issuer
        if subject:
            result["sub"] = subject
        if self.expires_at is not None:
            result["exp"] = self.expires_at
        if self.not_before is not None:
            result["nbf"] = self.not_before
        if self.issued_at is not None:
            result["iat"] = self.issued_at
        return result

    def to_payload(self) -> dict[str, Any]:
        """Convert to the JSON payload dictionary."""
        return self._registered()


@dataclass(frozen=True)
class SingleFileClaims(Claims):
    """Claims asserting the digest of one file or named blob."""

    subject: str | None = field(default=None, kw_only=True)
    digest: str = field(default="", kw_only=True)

    def to_payload(self) -> dict[str, Any]:
        result = self._registered(self.subject)
        result["digest"] = self.digest
        return result

    def digest_bytes(self) -> bytes:
        """Decoded digest claim (raises ClaimError if malformed)."""
        return decode_digest(self.digest)


@dataclass(frozen=True)
class ManifestClaims(Claims):
    """Claims asserting the digests of a set of files."""

    manifest: Mapping[str, str] = field(default_factory=dict, kw_only=True)

    def __post_init__(self) -> None:
        object.__setattr__(self, "manifest", MappingProxyType(dict(self.manifest)))

    def to_payload(self) -> dict[str, Any]:
        result = self._registered()
        result["manifest"] = {path: self.manifest[path] for path in sorted(self.manifest)}
        return result


def claims_from_payload(payload: Any) -> SingleFileClaims | ManifestClaims:
    """Build a claim set from a decoded token payload.

    Only structure and types are checked here; issuer, time window and
    digest encoding are validated by the verifier.

    Raises:
        ParseError: If the payload is not an object or a claim has the wrong type
        ClaimError: If the payload carries neither a digest nor a manifest
    """
    if not isinstance(payload, dict):
        raise ParseError("Token payload must be a JSON object")

    issuer = _string(payload, "iss")
    issued_at = _numeric_date(payload, "iat")
    not_before = _numeric_date(payload, "nbf")
    expires_at = _numeric_date(payload, "exp")

    if "manifest" in payload:
        manifest = payload["manifest"]
        if not isinstance(manifest, dict):
            raise ParseError("Claim 'manifest' must be an object")
        for path, value in manifest.items():
            if not isinstance(value, str):
                raise ParseError(f"Manifest digest for {path} must be a string")
        return ManifestClaims(
            issuer,
            issued_at,
            not_before=not_before,
            expires_at=expires_at,
            manifest=manifest,
        )

    if "digest" in payload:
        digest = _string(payload, "digest")
        return SingleFileClaims(
            issuer,
            issued_at,
            not_before=not_before,
            expires_at=expires_at,
            subject=_string(payload, "sub"),
            digest=digest or "",
        )

    raise ClaimError("Token carries neither a digest nor a manifest claim", claim="digest")
