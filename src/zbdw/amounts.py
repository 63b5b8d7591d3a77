"""Conversion and validation between sats and millisatoshis.

Upstream APIs speak millisatoshis (msats); everything shown to the user and
stored in the ledger is whole sats.
"""

import re
from typing import Optional

from .errors import WalletError

MSATS_PER_SAT = 1000

_UNSIGNED_INT = re.compile(r"[0-9]+")


def to_sats(msats: int | float) -> int:
    """Convert msats to sats, rounding down.

    1999 msats is 1 sat, never 2.
    """
    return int(msats // MSATS_PER_SAT)


def to_msats(sats: int) -> int:
    """Convert whole sats to msats (exact)."""
    return sats * MSATS_PER_SAT


def msats_string(sats: int) -> str:
    """Wire form of an amount for endpoints that take msats as a string."""
    return str(to_msats(sats))


def parse_sats(value: Optional[str]) -> int:
    """Parse a user-supplied amount in sats.

    Args:
        value: Raw amount text from the command line

    Returns:
        Positive integer amount in sats

    Raises:
        WalletError: ``invalid_amount`` if the text is missing, not an
            unsigned integer, or zero
    """
    if value is None or not value.strip():
        raise WalletError("invalid_amount", "Amount in sats is required")

    normalized = value.strip()
    if not _UNSIGNED_INT.fullmatch(normalized):
        raise WalletError(
            "invalid_amount",
            "Amount must be a positive integer in sats",
            {"amount_sats": value},
        )

    amount = int(normalized)
    if amount <= 0:
        raise WalletError(
            "invalid_amount",
            "Amount must be a positive integer in sats",
            {"amount_sats": value},
        )

    return amount


def looks_like_amount(value: str) -> bool:
    """True when the text is an unsigned integer (used by withdraw shorthand)."""
    return bool(_UNSIGNED_INT.fullmatch(value.strip()))
