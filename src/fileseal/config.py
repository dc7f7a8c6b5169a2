"""
Configuration for signing and verification.

Supports:
- Environment variable configuration
- YAML file configuration
- Runtime overrides (CLI options)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from fileseal.jws import DEFAULT_ALGORITHM, RSA_ALGORITHMS
from fileseal.security import SecurityLimits, safe_read_file
from fileseal.signing import TokenSigner
from fileseal.verifier import TokenVerifier

DEFAULT_TOKEN_PATH = ".integrity"
DEFAULT_LEEWAY_SECONDS = 10


def _optional_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class SealConfig:
    """
    Settings shared by the signer, the verifier and the CLI.

    All fields default to safe values:
    - issuer: None (must be supplied by the caller)
    - algorithm: RS512
    - leeway_seconds: 10
    - max_file_size: None (no limit)
    """

    issuer: str | None = None
    algorithm: str = DEFAULT_ALGORITHM
    leeway_seconds: int = DEFAULT_LEEWAY_SECONDS
    max_file_size: int | None = None
    signing_key_path: str | None = None
    verify_key_path: str | None = None
    token_path: str = DEFAULT_TOKEN_PATH

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.algorithm not in RSA_ALGORITHMS:
            raise ValueError(
                f"algorithm must be one of {', '.join(sorted(RSA_ALGORITHMS))}, got {self.algorithm}"
            )

        if self.leeway_seconds < 0:
            raise ValueError(f"leeway_seconds must be >= 0, got {self.leeway_seconds}")

        if self.max_file_size is not None and self.max_file_size < 1:
            raise ValueError(f"max_file_size must be >= 1, got {self.max_file_size}")

        if not self.token_path:
            raise ValueError("token_path cannot be blank")

    @classmethod
    def from_env(cls) -> SealConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            FILESEAL_ISSUER: Issuer name
            FILESEAL_ALGORITHM: RS256, RS384 or RS512
            FILESEAL_LEEWAY_SECONDS: Clock skew tolerance for iat/nbf/exp
            FILESEAL_MAX_FILE_SIZE: Largest file to read, in bytes
            FILESEAL_SIGNING_KEY: Path to PEM private key
            FILESEAL_VERIFY_KEY: Path to PEM public key
            FILESEAL_TOKEN_PATH: Default token file name
        """
        leeway = _optional_int(os.getenv("FILESEAL_LEEWAY_SECONDS"), "FILESEAL_LEEWAY_SECONDS")

        return cls(
            issuer=os.getenv("FILESEAL_ISSUER") or None,
            algorithm=os.getenv("FILESEAL_ALGORITHM", DEFAULT_ALGORITHM).upper(),
            leeway_seconds=DEFAULT_LEEWAY_SECONDS if leeway is None else leeway,
            max_file_size=_optional_int(os.getenv("FILESEAL_MAX_FILE_SIZE"), "FILESEAL_MAX_FILE_SIZE"),
            signing_key_path=os.getenv("FILESEAL_SIGNING_KEY") or None,
            verify_key_path=os.getenv("FILESEAL_VERIFY_KEY") or None,
            token_path=os.getenv("FILESEAL_TOKEN_PATH") or DEFAULT_TOKEN_PATH,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SealConfig:
        """Create configuration from dictionary (e.g., YAML).

        Integer fields may be given as numbers or numeric strings.
        """
        leeway = _optional_int(data.get("leeway_seconds"), "leeway_seconds")

        return cls(
            issuer=data.get("issuer"),
            algorithm=str(data.get("algorithm", DEFAULT_ALGORITHM)).upper(),
            leeway_seconds=DEFAULT_LEEWAY_SECONDS if leeway is None else leeway,
            max_file_size=_optional_int(data.get("max_file_size"), "max_file_size"),
            signing_key_path=data.get("signing_key_path"),
            verify_key_path=data.get("verify_key_path"),
            token_path=data.get("token_path", DEFAULT_TOKEN_PATH),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> SealConfig:
        """Load configuration from a YAML file.

        Example:
            issuer: build-server
            algorithm: RS512
            leeway_seconds: 10
            signing_key_path: keys/private.pem
        """
        data = yaml.safe_load(safe_read_file(path).decode("utf-8"))
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration format in {path}")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "issuer": self.issuer,
            "algorithm": self.algorithm,
            "leeway_seconds": self.leeway_seconds,
            "max_file_size": self.max_file_size,
            "signing_key_path": self.signing_key_path,
            "verify_key_path": self.verify_key_path,
            "token_path": self.token_path,
        }

    def limits(self) -> SecurityLimits:
        return SecurityLimits(max_file_size=self.max_file_size)

    def signer(self) -> TokenSigner:
        """Build a signer using the system clock."""
        return TokenSigner(algorithm=self.algorithm, limits=self.limits())

    def verifier(self) -> TokenVerifier:
        """Build a verifier using the system clock."""
        return TokenVerifier(leeway=timedelta(seconds=self.leeway_seconds), limits=self.limits())
