"""Typed field extraction from loosely-shaped upstream JSON.

Upstream payloads name the same logical field several ways (``expiresAt`` vs
``expires_at``, top level vs nested under ``data``). Each logical field is
described by an ordered tuple of candidate paths; the first present,
non-empty value wins.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from .amounts import to_sats

FieldPath = tuple[str, ...]

STATUS_PATHS: tuple[FieldPath, ...] = (
    ("status",),
    ("state",),
    ("data", "status"),
    ("data", "state"),
)

TIMESTAMP_PATHS: tuple[FieldPath, ...] = (
    ("timestamp",),
    ("created_at",),
    ("createdAt",),
    ("updated_at",),
    ("updatedAt",),
    ("data", "timestamp"),
    ("data", "created_at"),
    ("data", "createdAt"),
    ("data", "updated_at"),
    ("data", "updatedAt"),
)

AMOUNT_SAT_PATHS: tuple[FieldPath, ...] = (
    ("amount_sats",),
    ("amountSats",),
    ("data", "amount_sats"),
    ("data", "amountSats"),
)

AMOUNT_MSAT_PATHS: tuple[FieldPath, ...] = (
    ("amount",),
    ("amountMsat",),
    ("amount_msat",),
    ("data", "amount"),
    ("data", "amountMsat"),
    ("data", "amount_msat"),
)

FEE_SAT_PATHS: tuple[FieldPath, ...] = (
    ("fee_sats",),
    ("feeSats",),
    ("data", "fee_sats"),
    ("data", "feeSats"),
)

FEE_MSAT_PATHS: tuple[FieldPath, ...] = (
    ("fee",),
    ("feeMsat",),
    ("fee_msat",),
    ("data", "fee"),
    ("data", "feeMsat"),
    ("data", "fee_msat"),
)

PREIMAGE_PATHS: tuple[FieldPath, ...] = (("preimage",), ("data", "preimage"))


def get_at_path(payload: Any, path: Sequence[str]) -> Any:
    """Walk ``path`` through nested dicts; None when any step is missing."""
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def to_number(value: Any) -> Optional[float]:
    """Coerce a JSON number or numeric string to a finite float."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def to_amount(value: Any) -> Optional[float]:
    """Like ``to_number``, but negative amounts read as absent."""
    number = to_number(value)
    if number is None or number < 0:
        return None
    return number


def as_string(value: Any) -> Optional[str]:
    """Return a trimmed non-empty string, else None."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def pick_string(payload: Any, *paths: FieldPath) -> Optional[str]:
    """First non-empty string found along ``paths``."""
    for path in paths:
        value = get_at_path(payload, path)
        if isinstance(value, str) and value:
            return value
    return None


def pick_sats(
    payload: Any,
    sat_paths: Sequence[FieldPath],
    msat_paths: Sequence[FieldPath],
) -> Optional[int]:
    """Read an amount in sats, preferring explicit sat fields over msat fields.

    Returns:
        Amount in whole sats (floored), or None if no candidate is a
        non-negative number
    """
    for path in sat_paths:
        value = to_amount(get_at_path(payload, path))
        if value is not None:
            return math.floor(value)

    for path in msat_paths:
        value = to_amount(get_at_path(payload, path))
        if value is not None:
            return to_sats(value)

    return None


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Payload:
    """Read-only view over an upstream JSON body with fallback lookups."""

    def __init__(self, body: Any):
        self.body = body

    def string(self, *paths: FieldPath) -> Optional[str]:
        return pick_string(self.body, *paths)

    def sats(
        self,
        sat_paths: Sequence[FieldPath] = AMOUNT_SAT_PATHS,
        msat_paths: Sequence[FieldPath] = AMOUNT_MSAT_PATHS,
        fallback: Optional[int] = 0,
    ) -> Optional[int]:
        value = pick_sats(self.body, sat_paths, msat_paths)
        return fallback if value is None else value

    def fee_sats(self) -> int:
        return pick_sats(self.body, FEE_SAT_PATHS, FEE_MSAT_PATHS) or 0

    def status(self, fallback: str) -> str:
        return self.string(*STATUS_PATHS) or fallback

    def timestamp(self) -> str:
        return self.string(*TIMESTAMP_PATHS) or now_iso()

    def preimage(self) -> Optional[str]:
        return self.string(*PREIMAGE_PATHS)

    def unwrap(self, *keys: str) -> "Payload":
        """Descend into the first envelope key holding an object.

        ``Payload({"data": {...}}).unwrap("data")`` views the inner object;
        a body without any of ``keys`` is returned unchanged.
        """
        for key in keys:
            inner = get_at_path(self.body, (key,))
            if isinstance(inner, dict):
                return Payload(inner)
        return self

    def get(self, *path: str) -> Any:
        return get_at_path(self.body, path)
