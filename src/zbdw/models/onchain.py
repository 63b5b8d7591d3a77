"""Pydantic models for onchain payout responses.

One model per upstream response class (quote, create, status, retry). The
transport returns untyped JSON; clients convert to these once at the boundary.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel

PayoutStatus = Literal[
    "created",
    "queued",
    "broadcasting",
    "succeeded",
    "failed_invoice_expired",
    "failed_lockup",
    "refunded",
    "manual_review",
]


class PayoutKickoff(BaseModel):
    """Acknowledgement that an upstream workflow was enqueued."""

    enqueued: bool = False
    workflow: Optional[str] = None
    kickoff_id: Optional[str] = None

    model_config = {"frozen": True}


class OnchainQuote(BaseModel):
    quote_id: Optional[str] = None
    amount_sats: Optional[int] = None
    fee_sats: Optional[int] = None
    total_sats: Optional[int] = None
    destination: Optional[str] = None
    expires_at: Optional[str] = None

    model_config = {"frozen": True}


class OnchainPayoutCreated(BaseModel):
    payout_id: str
    # Upstream status passes through unchanged, known or not
    status: str
    amount_sats: Optional[int] = None
    destination: Optional[str] = None
    request_id: Optional[str] = None
    kickoff: Optional[PayoutKickoff] = None

    model_config = {"frozen": True}


class OnchainPayoutStatus(BaseModel):
    payout_id: str
    status: str
    amount_sats: Optional[int] = None
    destination: Optional[str] = None
    txid: Optional[str] = None
    failure_code: Optional[str] = None
    kickoff: Optional[PayoutKickoff] = None

    model_config = {"frozen": True}


class OnchainRetryResult(BaseModel):
    payout_id: str
    status: str
    kickoff: Optional[PayoutKickoff] = None

    model_config = {"frozen": True}


def dump_payout(model: BaseModel) -> dict[str, Any]:
    """CLI representation; a missing kickoff block is omitted."""
    data = model.model_dump()
    if data.get("kickoff") is None:
        data.pop("kickoff", None)
    return data
