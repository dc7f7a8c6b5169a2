"""Compact JWS encoding for signed claim sets.

A token is three base64url segments joined by dots:

    b64url(header) . b64url(payload) . b64url(signature)

The header declares the algorithm (``{"alg":"RS512","typ":"JWT"}``) and the
signature is RSASSA-PKCS1-v1_5 over the ASCII bytes ``header.payload``.
Only the RSA family is accepted; tokens declaring any other algorithm are
rejected before any key material is touched.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from fileseal.errors import ParseError, SignatureError
from fileseal.security import SecurityLimits, safe_load_json

# Algorithm identifiers
ALG_RS256 = "RS256"
ALG_RS384 = "RS384"
ALG_RS512 = "RS512"

DEFAULT_ALGORITHM = ALG_RS512
TOKEN_TYPE = "JWT"

RSA_ALGORITHMS: dict[str, type[hashes.HashAlgorithm]] = {
    ALG_RS256: hashes.SHA256,
    ALG_RS384: hashes.SHA384,
    ALG_RS512: hashes.SHA512,
}

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")

_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def b64url_encode(data: bytes) -> str:
    """Base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """Strict base64url decode of an unpadded segment.

    Raises:
        ParseError: If the segment contains characters outside the alphabet
            or has an impossible length
    """
    if not _B64URL_RE.fullmatch(segment) or len(segment) % 4 == 1:
        raise ParseError("Token segment is not valid base64url")
    try:
        return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"Token segment is not valid base64url: {e}") from e


def canonical_json(obj: dict[str, Any]) -> bytes:
    """Compact JSON preserving key order, as used for header and payload.

    Non-ASCII text is emitted as UTF-8, but ``<``, ``>``, ``&`` and the
    U+2028/U+2029 line separators are always \\u-escaped so that existing
    tokens are reproduced byte-for-byte.
    """
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _ESCAPES:
        text = text.replace(char, escaped)
    return text.encode("utf-8")


@dataclass(frozen=True)
class DecodedToken:
    """A token split into its parts. The signature is not yet checked."""

    header: dict[str, Any]
    payload: Any
    signing_input: bytes
    signature: bytes

    @property
    def algorithm(self) -> str | None:
        alg = self.header.get("alg")
        return alg if isinstance(alg, str) else None


def _hash_for(algorithm: str) -> hashes.HashAlgorithm:
    try:
        return RSA_ALGORITHMS[algorithm]()
    except KeyError:
        raise SignatureError(f"Unsupported signing algorithm: {algorithm}") from None


def encode(payload: dict[str, Any], private_key: RSAPrivateKey, algorithm: str = DEFAULT_ALGORITHM) -> bytes:
    """Serialize and sign a payload, returning the compact token bytes."""
    hash_algorithm = _hash_for(algorithm)
    header = {"alg": algorithm, "typ": TOKEN_TYPE}

    signing_input = f"{b64url_encode(canonical_json(header))}.{b64url_encode(canonical_json(payload))}"
    signature = private_key.sign(signing_input.encode("ascii"), padding.PKCS1v15(), hash_algorithm)

    return f"{signing_input}.{b64url_encode(signature)}".encode("ascii")


def decode(token: bytes | str, limits: SecurityLimits | None = None) -> DecodedToken:
    """Split a token and decode its header and payload.

    Raises:
        ParseError: If the token is not three well-formed segments
    """
    limits = limits or SecurityLimits()

    if len(token) > limits.max_token_size:
        raise ParseError(f"Token too large: {len(token)} bytes > {limits.max_token_size}")

    if isinstance(token, bytes):
        try:
            token = token.decode("ascii")
        except UnicodeDecodeError as e:
            raise ParseError("Token contains non-ASCII bytes") from e

    token = token.strip()
    parts = token.split(".")
    if len(parts) != 3:
        raise ParseError(f"Token contains an invalid number of segments ({len(parts)})")

    header_seg, payload_seg, signature_seg = parts

    header = safe_load_json(b64url_decode(header_seg), limits)
    if not isinstance(header, dict):
        raise ParseError("Token header must be a JSON object")

    payload = safe_load_json(b64url_decode(payload_seg), limits)

    return DecodedToken(
        header=header,
        payload=payload,
        signing_input=f"{header_seg}.{payload_seg}".encode("ascii"),
        signature=b64url_decode(signature_seg),
    )


def verify_signature(decoded: DecodedToken, public_key: RSAPublicKey) -> None:
    """Check the declared algorithm and the signature.

    Raises:
        SignatureError: If the algorithm is not RS256/RS384/RS512, or the
            signature does not verify under ``public_key``
    """
    algorithm = decoded.algorithm
    if algorithm not in RSA_ALGORITHMS:
        raise SignatureError(f"Token signing method {algorithm!r} is not in the RSA family")

    if not isinstance(public_key, RSAPublicKey):
        raise SignatureError("Key is not an RSA public key")

    try:
        public_key.verify(decoded.signature, decoded.signing_input, padding.PKCS1v15(), _hash_for(algorithm))
    except InvalidSignature:
        raise SignatureError("Token signature is invalid") from None
