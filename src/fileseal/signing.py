"""Token signing for single files and multi-file manifests.

The signer computes SHA-256 digests, wraps them in a claim set stamped with
the issuer and the current time, and signs the result as a compact RS512
token. It never writes files; callers persist the returned bytes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from fileseal import jws
from fileseal.claims import Claims, ManifestClaims, SingleFileClaims
from fileseal.clock import Clock, system_clock, to_numeric_date
from fileseal.digest import compute_digest, deduplicate_paths, digest_file, digest_hex
from fileseal.errors import ValidationError
from fileseal.security import SecurityLimits, safe_read_file

logger = logging.getLogger(__name__)


def _require_utf8(value: str, name: str) -> None:
    """Reject strings holding lone surrogates (undecodable file names)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValidationError(f"{name} {value!r} is not valid UTF-8") from None


def _require_issuer_and_key(issuer: str | None, private_key: RSAPrivateKey | None) -> None:
    if not issuer:
        raise ValidationError("issuer cannot be blank")
    _require_utf8(issuer, "issuer")
    if private_key is None:
        raise ValidationError("key cannot be blank")
    if not isinstance(private_key, RSAPrivateKey):
        raise ValidationError(f"key must be an RSA private key, got {type(private_key).__name__}")


class TokenSigner:
    """Produces signed integrity tokens."""

    def __init__(
        self,
        clock: Clock = system_clock,
        algorithm: str = jws.DEFAULT_ALGORITHM,
        limits: SecurityLimits | None = None,
    ) -> None:
        """Initialize signer.

        Args:
            clock: Time source for ``iat``; pass a fixed clock in tests
            algorithm: One of RS256, RS384, RS512
            limits: Limits applied when reading files
        """
        if algorithm not in jws.RSA_ALGORITHMS:
            raise ValidationError(f"Unsupported signing algorithm: {algorithm}")
        self.clock = clock
        self.algorithm = algorithm
        self.limits = limits or SecurityLimits()

    def sign(
        self,
        issuer: str,
        subject: str,
        data: bytes | None,
        private_key: RSAPrivateKey | None,
    ) -> bytes:
        """Sign the digest of ``data`` under ``subject``.

        Args:
            issuer: Name of the signing party
            subject: File path or logical name the data belongs to
            data: Content to digest; must be non-empty
            private_key: RSA signing key

        Returns:
            Compact token bytes

        Raises:
            ValidationError: If any argument is empty or missing
        """
        _require_issuer_and_key(issuer, private_key)
        if not subject:
            raise ValidationError("subject cannot be blank")
        _require_utf8(subject, "subject")
        if not data:
            raise ValidationError("data cannot be empty")

        now = to_numeric_date(self.clock())
        claims = SingleFileClaims(
            issuer,
            now,
            not_before=now,
            subject=subject,
            digest=digest_hex(compute_digest(data)),
        )

        logger.debug("Signing %s for issuer %s", subject, issuer)
        return self._encode(claims, private_key)

    def sign_file(
        self,
        issuer: str,
        path: str | Path,
        private_key: RSAPrivateKey | None,
    ) -> bytes:
        """Read the file at ``path`` and sign it with the path as subject.

        Raises:
            ValidationError: If an argument is empty or the file is empty
            ReadError: If the file cannot be read
        """
        _require_issuer_and_key(issuer, private_key)
        if not path:
            raise ValidationError("path cannot be blank")

        data = safe_read_file(path, self.limits)
        return self.sign(issuer, str(path), data, private_key)

    def sign_manifest(
        self,
        issuer: str,
        paths: Sequence[str] | None,
        private_key: RSAPrivateKey | None,
    ) -> bytes:
        """Sign a manifest of digests for ``paths``.

        Duplicate paths are collapsed. Every file must be readable; the
        first failure aborts the whole operation.

        Raises:
            ValidationError: If issuer, paths or key are empty or missing, or a
                path is not valid UTF-8
            ReadError: If any file cannot be read
        """
        _require_issuer_and_key(issuer, private_key)
        if not paths:
            raise ValidationError("must specify at least one path")
        if isinstance(paths, (str, bytes)):
            raise ValidationError("paths must be a sequence of path strings")

        unique = deduplicate_paths(str(p) for p in paths)
        for path in unique:
            if not path:
                raise ValidationError("path cannot be blank")
            _require_utf8(path, "path")

        manifest = {path: digest_hex(digest_file(path, self.limits)) for path in unique}
        claims = ManifestClaims(issuer, to_numeric_date(self.clock()), manifest=manifest)

        logger.debug("Signing manifest of %d file(s) for issuer %s", len(manifest), issuer)
        return self._encode(claims, private_key)

    def _encode(self, claims: Claims, private_key: RSAPrivateKey) -> bytes:
        return jws.encode(claims.to_payload(), private_key, self.algorithm)


def sign(issuer: str, subject: str, data: bytes | None, private_key: RSAPrivateKey | None) -> bytes:
    """Sign ``data`` with a default signer."""
    return TokenSigner().sign(issuer, subject, data, private_key)


def sign_file(issuer: str, path: str | Path, private_key: RSAPrivateKey | None) -> bytes:
    """Sign the file at ``path`` with a default signer."""
    return TokenSigner().sign_file(issuer, path, private_key)


def sign_manifest(issuer: str, paths: Sequence[str] | None, private_key: RSAPrivateKey | None) -> bytes:
    """Sign a manifest of ``paths`` with a default signer."""
    return TokenSigner().sign_manifest(issuer, paths, private_key)
