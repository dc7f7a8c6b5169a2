"""Resource limits for untrusted input handling.

Tokens arrive from disk or the network and files can be arbitrarily large,
so reads and token parsing are bounded:

- max_file_size: largest file that will be read for digesting (None = no limit)
- max_token_size: largest token accepted by the verifier
- max_json_depth: deepest JSON nesting accepted in a token segment
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from fileseal.errors import ParseError, ReadError

logger = logging.getLogger(__name__)

# Default limits
DEFAULT_MAX_FILE_SIZE: int | None = None
DEFAULT_MAX_TOKEN_SIZE = 16 * 1024 * 1024  # 16 MB
DEFAULT_MAX_JSON_DEPTH = 32


class SecurityLimits:
    """Configurable resource limits."""

    def __init__(
        self,
        max_file_size: int | None = DEFAULT_MAX_FILE_SIZE,
        max_token_size: int = DEFAULT_MAX_TOKEN_SIZE,
        max_json_depth: int = DEFAULT_MAX_JSON_DEPTH,
    ) -> None:
        self.max_file_size = max_file_size
        self.max_token_size = max_token_size
        self.max_json_depth = max_json_depth

    def __repr__(self) -> str:
        return (
            f"SecurityLimits(max_file_size={self.max_file_size}, "
            f"max_token_size={self.max_token_size}, max_json_depth={self.max_json_depth})"
        )


def safe_read_file(path: str | Path, limits: SecurityLimits | None = None) -> bytes:
    """Read a whole file, enforcing the size limit.

    Args:
        path: File path
        limits: Security limits

    Returns:
        File contents as bytes

    Raises:
        ReadError: If the file is missing, unreadable, not a regular file,
            or larger than ``limits.max_file_size``
    """
    if limits is None:
        limits = SecurityLimits()

    path_str = str(path)
    try:
        with open(path, "rb") as f:
            if limits.max_file_size is not None:
                size = Path(path).stat().st_size
                if size > limits.max_file_size:
                    raise ReadError(
                        f"File too large: {path_str} ({size} bytes > {limits.max_file_size})",
                        path=path_str,
                    )
            return f.read()
    except ReadError:
        raise
    except (OSError, ValueError) as e:
        # ValueError covers paths with embedded NUL bytes
        logger.debug("Failed to read %s: %s", path_str, e)
        raise ReadError(f"Unable to read {path_str}: {e}", path=path_str) from e


def check_json_depth(obj: Any, current_depth: int = 0, max_depth: int = DEFAULT_MAX_JSON_DEPTH) -> int:
    """Check JSON object depth.

    Returns:
        Actual depth of object

    Raises:
        ParseError: If depth exceeds max_depth
    """
    if current_depth > max_depth:
        raise ParseError(f"JSON depth exceeds maximum: {max_depth}")

    if isinstance(obj, dict):
        max_child_depth = current_depth
        for value in obj.values():
            child_depth = check_json_depth(value, current_depth + 1, max_depth)
            max_child_depth = max(max_child_depth, child_depth)
        return max_child_depth
    elif isinstance(obj, list):
        max_child_depth = current_depth
        for item in obj:
            child_depth = check_json_depth(item, current_depth + 1, max_depth)
            max_child_depth = max(max_child_depth, child_depth)
        return max_child_depth
    else:
        return current_depth


def safe_load_json(data: bytes, limits: SecurityLimits | None = None) -> Any:
    """Decode a UTF-8 JSON document with depth limits.

    Raises:
        ParseError: If the data is not valid UTF-8 JSON or is too deep
    """
    if limits is None:
        limits = SecurityLimits()

    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e

    check_json_depth(obj, max_depth=limits.max_json_depth)

    return obj
