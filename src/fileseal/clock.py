"""Time sources for signing and verification.

Signers and verifiers take a clock at construction instead of reading a
module-level time function, so production code always runs on the system
clock and tests pass a fixed one explicitly:

    signer = TokenSigner(clock=fixed_clock(datetime(2025, 1, 8, tzinfo=UTC)))
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def fixed_clock(instant: datetime) -> Clock:
    """Return a clock that always reports ``instant``.

    Naive datetimes are taken to be UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)

    def _now() -> datetime:
        return instant

    return _now


def to_numeric_date(instant: datetime) -> int:
    """Convert a datetime to whole seconds since the epoch (truncated)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return int(instant.timestamp())
