"""Pydantic models for hosted paylinks."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..normalize import as_string
from .ledger import PaylinkLifecycle, coerce_lifecycle, coerce_sats


class PaylinkResult(BaseModel):
    """Paylink as reported by the upstream service, with canonical lifecycle.

    Not persisted on its own. The attempt pointers exist only to locate the
    charge whose settlement should be reconciled into the ledger.
    """

    id: str
    url: Optional[str] = None
    status: str = Field(description="Raw upstream status string")
    lifecycle: PaylinkLifecycle = Field(description="Canonical lifecycle")
    amount_sats: Optional[int] = Field(default=None, description="None for variable-amount links")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    paid_payment_id: Optional[str] = None
    latest_attempt_id: Optional[str] = None
    active_attempt_id: Optional[str] = None

    model_config = {"frozen": True}

    def summary(self, include_timestamps: bool = True) -> dict[str, Any]:
        """Fields printed by the paylink commands."""
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "status": self.status,
            "lifecycle": self.lifecycle,
            "amount_sats": self.amount_sats,
        }
        if include_timestamps:
            data["created_at"] = self.created_at
            data["updated_at"] = self.updated_at
        return data


class PaylinkMetadataRecord(BaseModel):
    """Locally cached paylink metadata (paylinks.json)."""

    id: str
    status: Optional[str] = None
    lifecycle: Optional[PaylinkLifecycle] = None
    amount_sats: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    paid_payment_id: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("id", "status", "created_at", "updated_at", "paid_payment_id", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> Optional[str]:
        return as_string(value)

    @field_validator("lifecycle", mode="before")
    @classmethod
    def _known_lifecycle(cls, value: Any) -> Optional[str]:
        return coerce_lifecycle(value)

    @field_validator("amount_sats", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Optional[int]:
        return coerce_sats(value)

    @classmethod
    def from_result(cls, paylink: PaylinkResult) -> "PaylinkMetadataRecord":
        return cls(
            id=paylink.id,
            status=paylink.status,
            lifecycle=paylink.lifecycle,
            amount_sats=paylink.amount_sats,
            created_at=paylink.created_at,
            updated_at=paylink.updated_at,
            paid_payment_id=paylink.paid_payment_id,
        )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
