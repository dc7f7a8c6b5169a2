"""Error hierarchy for token signing and verification.

Every failure surfaced by the engine is a subclass of SealError so callers
can catch one type, or discriminate on the specific kind:

- ValidationError: a required argument is empty or missing
- ReadError: a file could not be read (also an OSError)
- ParseError: a token is not well formed
- SignatureError: algorithm mismatch or a signature that does not verify
- ClaimError: issuer, subject, time window or digest encoding rejected
- DigestMismatchError: a recomputed digest differs from the signed one
"""

from __future__ import annotations


class SealError(Exception):
    """Base class for all fileseal errors."""
    pass


class ValidationError(SealError, ValueError):
    """A required argument was empty or missing."""
    pass


class ReadError(SealError, OSError):
    """A file could not be read."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ParseError(SealError):
    """Token is not well formed."""
    pass


class SignatureError(SealError):
    """Token signature or algorithm was rejected."""
    pass


class ClaimError(SealError):
    """A claim in the token failed validation."""

    def __init__(self, message: str, claim: str | None = None) -> None:
        super().__init__(message)
        self.claim = claim


class DigestMismatchError(SealError):
    """Recomputed digest does not match the signed digest."""

    def __init__(self, path: str, expected: str | None = None, actual: str | None = None) -> None:
        super().__init__(f"Digests do not match for {path}")
        self.path = path
        self.expected = expected
        self.actual = actual
