"""PEM key loading and RSA key-pair generation."""

from __future__ import annotations

from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from fileseal.errors import ValidationError
from fileseal.security import safe_read_file

DEFAULT_KEY_SIZE = 2048


def parse_private_key(pem: bytes, password: bytes | None = None) -> RSAPrivateKey:
    """Parse a PEM private key (PKCS#8 or PKCS#1 "RSA PRIVATE KEY").

    Raises:
        ValidationError: If the data is not a PEM RSA private key
    """
    try:
        key = serialization.load_pem_private_key(pem, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ValidationError(f"Unable to parse private key: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise ValidationError(f"Expected an RSA private key, got {type(key).__name__}")
    return key


def parse_public_key(pem: bytes) -> RSAPublicKey:
    """Parse a PEM public key (SubjectPublicKeyInfo or PKCS#1).

    Raises:
        ValidationError: If the data is not a PEM RSA public key
    """
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ValidationError(f"Unable to parse public key: {e}") from e
    if not isinstance(key, RSAPublicKey):
        raise ValidationError(f"Expected an RSA public key, got {type(key).__name__}")
    return key


def load_private_key(path: str | Path, password: bytes | None = None) -> RSAPrivateKey:
    """Load a PEM private key from a file."""
    return parse_private_key(safe_read_file(path), password)


def load_public_key(path: str | Path) -> RSAPublicKey:
    """Load a PEM public key from a file."""
    return parse_public_key(safe_read_file(path))


def generate_keypair(key_size: int = DEFAULT_KEY_SIZE) -> tuple[RSAPrivateKey, RSAPublicKey]:
    """Generate a new RSA key pair.

    Returns:
        Tuple of (private_key, public_key)
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    return private_key, private_key.public_key()


def private_key_to_pem(key: RSAPrivateKey) -> bytes:
    """Serialize a private key as unencrypted PKCS#8 PEM."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def public_key_to_pem(key: RSAPublicKey) -> bytes:
    """Serialize a public key as SubjectPublicKeyInfo PEM."""
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
