"""Token verification and digest re-derivation.

Verification runs in fixed stages and stops at the first failure:

    parse -> signature -> issuer -> time window -> digest comparison

Each stage raises its own error type (ParseError, SignatureError,
ClaimError, DigestMismatchError); a successful call returns True.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from fileseal import jws
from fileseal.claims import ManifestClaims, SingleFileClaims, claims_from_payload
from fileseal.clock import Clock, system_clock
from fileseal.digest import compute_digest, decode_digest, digest_file, digest_hex, digests_equal
from fileseal.errors import ClaimError, DigestMismatchError, SealError, ValidationError
from fileseal.security import SecurityLimits, safe_read_file

logger = logging.getLogger(__name__)

DEFAULT_LEEWAY = timedelta(seconds=10)


def _require_issuer_and_key(issuer: str | None, public_key: RSAPublicKey | None) -> None:
    if not issuer:
        raise ValidationError("issuer cannot be blank")
    if public_key is None:
        raise ValidationError("key cannot be blank")
    if not isinstance(public_key, RSAPublicKey):
        raise ValidationError(f"key must be an RSA public key, got {type(public_key).__name__}")


class TokenVerifier:
    """Verifies signed integrity tokens against live data."""

    def __init__(
        self,
        clock: Clock = system_clock,
        leeway: timedelta = DEFAULT_LEEWAY,
        limits: SecurityLimits | None = None,
    ) -> None:
        self.clock = clock
        self.leeway = leeway
        self.limits = limits or SecurityLimits()

    def verify(
        self,
        issuer: str,
        subject: str,
        data: bytes | None,
        token: bytes | str | None,
        public_key: RSAPublicKey | None,
    ) -> bool:
        """Verify a single-file token against ``data``.

        Args:
            issuer: Expected issuer
            subject: Expected subject (file path or logical name)
            data: Current content to digest
            token: Token produced by TokenSigner.sign
            public_key: RSA key matching the signing key

        Returns:
            True if the token is valid and the digest matches

        Raises:
            ValidationError: If an argument is empty or missing
            ParseError, SignatureError, ClaimError, DigestMismatchError
        """
        _require_issuer_and_key(issuer, public_key)
        if not subject:
            raise ValidationError("subject cannot be blank")
        if not data:
            raise ValidationError("data cannot be empty")
        if not token:
            raise ValidationError("token cannot be empty")

        claims = self._check(issuer, token, public_key)
        try:
            if not isinstance(claims, SingleFileClaims):
                raise ClaimError("Expected a single-file token, got a manifest token", claim="digest")
            if claims.subject != subject:
                raise ClaimError(
                    f"Token subject {claims.subject!r} does not match {subject!r}", claim="sub"
                )

            expected = claims.digest_bytes()
            actual = compute_digest(data)
            if not digests_equal(expected, actual):
                raise DigestMismatchError(subject, expected=claims.digest, actual=digest_hex(actual))
        except SealError as e:
            logger.warning("Verification failed for %s: %s", subject, e)
            raise

        logger.debug("Verified %s", subject)
        return True

    def verify_file(
        self,
        issuer: str,
        path: str | Path,
        token_path: str | Path,
        public_key: RSAPublicKey | None,
    ) -> bool:
        """Verify the file at ``path`` against the token stored at ``token_path``.

        Raises:
            ValidationError: If an argument is empty or missing
            ReadError: If either file cannot be read
        """
        _require_issuer_and_key(issuer, public_key)
        if not path:
            raise ValidationError("path cannot be blank")
        if not token_path:
            raise ValidationError("token path cannot be blank")

        token = safe_read_file(token_path, self.limits)
        data = safe_read_file(path, self.limits)
        return self.verify(issuer, str(path), data, token, public_key)

    def verify_manifest(
        self,
        issuer: str,
        manifest_path: str | Path,
        root: str | Path,
        public_key: RSAPublicKey | None,
    ) -> bool:
        """Verify a manifest token and every file it records.

        The token is read from ``manifest_path`` joined under ``root`` (an
        absolute ``manifest_path`` stays inside ``root``). Recorded paths are
        read as written in the manifest, relative to the working directory.
        All entries must match.

        Raises:
            ValidationError: If an argument is empty or missing
            ReadError: If the token or any recorded file cannot be read
            DigestMismatchError: For the first file whose digest differs
        """
        _require_issuer_and_key(issuer, public_key)
        if not manifest_path:
            raise ValidationError("manifest path cannot be blank")

        token_file = Path(root, str(manifest_path).lstrip("/")) if root else Path(manifest_path)
        token = safe_read_file(token_file, self.limits)
        if not token:
            raise ValidationError(f"token file {token_file} is empty")

        claims = self._check(issuer, token, public_key)
        try:
            if not isinstance(claims, ManifestClaims):
                raise ClaimError("Expected a manifest token, got a single-file token", claim="manifest")
            if not claims.manifest:
                raise ClaimError("Manifest contains no entries", claim="manifest")

            for path, claimed in claims.manifest.items():
                expected = _decode_entry(path, claimed)
                actual = digest_file(path, self.limits)
                if not digests_equal(expected, actual):
                    raise DigestMismatchError(path, expected=claimed, actual=digest_hex(actual))
        except SealError as e:
            logger.warning("Manifest verification failed for %s: %s", token_file, e)
            raise

        logger.debug("Verified manifest %s (%d files)", token_file, len(claims.manifest))
        return True

    def _check(
        self,
        issuer: str,
        token: bytes | str,
        public_key: RSAPublicKey,
    ) -> SingleFileClaims | ManifestClaims:
        """Run the shared parse, signature, issuer and time-window stages."""
        try:
            decoded = jws.decode(token, self.limits)
            jws.verify_signature(decoded, public_key)
            claims = claims_from_payload(decoded.payload)
            self._check_issuer(claims.issuer, issuer)
            self._check_time(claims)
        except SealError as e:
            logger.warning("Token rejected: %s", e)
            raise
        return claims

    @staticmethod
    def _check_issuer(claimed: str | None, expected: str) -> None:
        if claimed != expected:
            raise ClaimError(f"Token has invalid issuer {claimed!r}", claim="iss")

    def _check_time(self, claims: SingleFileClaims | ManifestClaims) -> None:
        now = self.clock().timestamp()
        leeway = self.leeway.total_seconds()

        if claims.issued_at is None:
            raise ClaimError("Token is missing the issued-at claim", claim="iat")
        if claims.issued_at > now + leeway:
            raise ClaimError("Token used before issued", claim="iat")
        if claims.not_before is not None and claims.not_before > now + leeway:
            raise ClaimError("Token is not valid yet", claim="nbf")
        if claims.expires_at is not None and claims.expires_at <= now - leeway:
            raise ClaimError("Token is expired", claim="exp")


def _decode_entry(path: str, claimed: str) -> bytes:
    try:
        return decode_digest(claimed)
    except ClaimError as e:
        raise ClaimError(f"Malformed digest for {path}: {e}", claim="manifest") from e


def verify(
    issuer: str,
    subject: str,
    data: bytes | None,
    token: bytes | str | None,
    public_key: RSAPublicKey | None,
) -> bool:
    """Verify a single-file token with a default verifier."""
    return TokenVerifier().verify(issuer, subject, data, token, public_key)


def verify_file(issuer: str, path: str | Path, token_path: str | Path, public_key: RSAPublicKey | None) -> bool:
    """Verify a file against a stored token with a default verifier."""
    return TokenVerifier().verify_file(issuer, path, token_path, public_key)


def verify_manifest(issuer: str, manifest_path: str | Path, root: str | Path, public_key: RSAPublicKey | None) -> bool:
    """Verify a manifest token with a default verifier."""
    return TokenVerifier().verify_manifest(issuer, manifest_path, root, public_key)
