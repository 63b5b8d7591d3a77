"""Pydantic models for ledger records."""

import math
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..normalize import as_string, to_number

PaylinkLifecycle = Literal["created", "active", "paid", "expired", "dead"]
PAYLINK_LIFECYCLES: tuple[str, ...] = ("created", "active", "paid", "expired", "dead")

RecordSource = Literal["paylink", "onchain"]
RECORD_SOURCES: tuple[str, ...] = ("paylink", "onchain")


def coerce_sats(value: Any) -> Optional[int]:
    """Accept ints, floats and numeric strings (legacy files stored "250")."""
    number = to_number(value)
    if number is None:
        return None
    return math.floor(number)


def coerce_lifecycle(value: Any) -> Optional[str]:
    """Known lifecycle names pass through; anything else reads as absent."""
    text = as_string(value)
    return text if text in PAYLINK_LIFECYCLES else None


class PaymentRecord(BaseModel):
    """One payment-affecting event in the local history.

    Written to payments.json as part of a JSON array. Never mutated or
    deleted; corrections arrive as new records. Optional fields that are
    absent are omitted on disk so older files and newer files read the same.
    """

    id: str = Field(description="Upstream entity id (charge, payment or payout id)")
    kind: Literal["send", "receive"] = Field(alias="type", description="Direction of the payment")
    amount_sats: int = Field(ge=0, description="Amount in whole sats")
    status: str = Field(description="Upstream or normalized status")
    timestamp: str = Field(description="ISO-8601 timestamp")
    fee_sats: Optional[int] = Field(default=None, description="Routing fee in sats")
    preimage: Optional[str] = Field(default=None, description="Payment proof for completed sends")
    source: Optional[RecordSource] = Field(default=None, description="Absent for plain Lightning payments")

    # Paylink settlement metadata
    paylink_id: Optional[str] = None
    paylink_attempt_id: Optional[str] = None
    paylink_lifecycle: Optional[PaylinkLifecycle] = None
    paylink_amount_sats: Optional[int] = None

    # Onchain payout metadata
    onchain_network: Optional[str] = None
    onchain_address: Optional[str] = None
    onchain_payout_id: Optional[str] = None

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator(
        "id",
        "status",
        "timestamp",
        "preimage",
        "paylink_id",
        "paylink_attempt_id",
        "onchain_network",
        "onchain_address",
        "onchain_payout_id",
        mode="before",
    )
    @classmethod
    def _strip_strings(cls, value: Any) -> Optional[str]:
        return as_string(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _default_kind(cls, value: Any) -> str:
        return "receive" if as_string(value) == "receive" else "send"

    @field_validator("amount_sats", "fee_sats", "paylink_amount_sats", mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> Optional[int]:
        return coerce_sats(value)

    @field_validator("paylink_lifecycle", mode="before")
    @classmethod
    def _known_lifecycle(cls, value: Any) -> Optional[str]:
        return coerce_lifecycle(value)

    @field_validator("source", mode="before")
    @classmethod
    def _known_source(cls, value: Any) -> Optional[str]:
        text = as_string(value)
        return text if text in RECORD_SOURCES else None

    def to_json_dict(self) -> dict[str, Any]:
        """On-disk / CLI representation (aliases, absent fields omitted)."""
        return self.model_dump(by_alias=True, exclude_none=True)
