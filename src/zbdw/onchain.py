"""Onchain payout state machine and response parsing.

Payout lifecycle::

    created -> queued -> broadcasting -> succeeded
                                      -> failed_invoice_expired --retry_claim--> queued
                                      -> failed_lockup
                                      -> refunded
                                      -> manual_review

Only ``failed_invoice_expired`` can be retried. The retry endpoint is still
called for any status: the upstream service is the authority and its
rejection is surfaced unchanged.
"""

from typing import Any, Optional, Union

from .errors import WalletError
from .models.ledger import PaymentRecord
from .models.onchain import (
    OnchainPayoutCreated,
    OnchainPayoutStatus,
    OnchainQuote,
    OnchainRetryResult,
    PayoutKickoff,
)
from .normalize import FieldPath, Payload, as_string, now_iso, pick_sats


PAYOUT_STATUSES: tuple[str, ...] = (
    "created",
    "queued",
    "broadcasting",
    "succeeded",
    "failed_invoice_expired",
    "failed_lockup",
    "refunded",
    "manual_review",
)
IN_FLIGHT_STATUSES: frozenset[str] = frozenset({"created", "queued", "broadcasting"})
TERMINAL_STATUSES: frozenset[str] = frozenset(PAYOUT_STATUSES) - IN_FLIGHT_STATUSES
RETRYABLE_STATUSES: frozenset[str] = frozenset({"failed_invoice_expired"})

ONCHAIN_NETWORK = "bitcoin"

_SAT_PATHS = {
    "amount_sats": (("amount_sats",), ("amountSats",)),
    "fee_sats": (("fee_sats",), ("feeSats",)),
    "total_sats": (("total_sats",), ("totalSats",)),
}


def normalize_payout_status(value: Any) -> Optional[str]:
    """Lower-case a known status; unknown strings pass through trimmed."""
    text = as_string(value)
    if text is None:
        return None
    return text.lower() if text.lower() in PAYOUT_STATUSES else text


def is_terminal(status: str) -> bool:
    """True for statuses no further transition leaves (unknown: False)."""
    return status in TERMINAL_STATUSES


def can_retry_claim(status: str) -> bool:
    return status in RETRYABLE_STATUSES


def next_status(status: str, event: str) -> Optional[str]:
    """Expected status after ``event``; None when the transition is not allowed."""
    if event == "retry_claim":
        return "queued" if can_retry_claim(status) else None
    return None


def require_consent(accept_terms: bool) -> None:
    """Fail fast when the caller has not accepted the payout terms.

    Must run before credential lookup or any outbound request.
    """
    if not accept_terms:
        raise WalletError(
            "accept_terms_required",
            "Onchain send requires --accept-terms to confirm consent",
        )


def parse_quote(body: Any) -> OnchainQuote:
    data = Payload(body).unwrap("data")
    return OnchainQuote(
        quote_id=data.string(("quote_id",), ("quoteId",), ("id",)),
        amount_sats=_sats(data, "amount_sats"),
        fee_sats=_sats(data, "fee_sats"),
        total_sats=_sats(data, "total_sats"),
        destination=data.string(("destination",), ("address",)),
        expires_at=data.string(("expires_at",), ("expiresAt",)),
    )


def parse_created(body: Any) -> OnchainPayoutCreated:
    data = Payload(body).unwrap("data")
    return OnchainPayoutCreated(
        payout_id=_payout_id(data, body),
        status=normalize_payout_status(data.get("status")) or "created",
        amount_sats=_sats(data, "amount_sats"),
        destination=data.string(("destination",), ("address",)),
        request_id=data.string(("request_id",), ("requestId",)),
        kickoff=_kickoff(data),
    )


def parse_status(body: Any) -> OnchainPayoutStatus:
    data = Payload(body).unwrap("data")
    return OnchainPayoutStatus(
        payout_id=_payout_id(data, body),
        status=normalize_payout_status(data.get("status")) or "created",
        amount_sats=_sats(data, "amount_sats"),
        destination=data.string(("destination",), ("address",)),
        txid=data.string(("txid",), ("tx_id",), ("txId",)),
        failure_code=data.string(("failure_code",), ("failureCode",)),
        kickoff=_kickoff(data),
    )


def parse_retry(body: Any) -> OnchainRetryResult:
    data = Payload(body).unwrap("data")
    return OnchainRetryResult(
        payout_id=_payout_id(data, body),
        status=normalize_payout_status(data.get("status")) or "queued",
        kickoff=_kickoff(data),
    )


def build_payout_record(
    payout: Union[OnchainPayoutCreated, OnchainPayoutStatus],
    timestamp: Optional[str] = None,
) -> PaymentRecord:
    """Project a payout into the payment ledger."""
    return PaymentRecord(
        id=payout.payout_id,
        kind="send",
        amount_sats=payout.amount_sats or 0,
        status=payout.status,
        timestamp=timestamp or now_iso(),
        source="onchain",
        onchain_network=ONCHAIN_NETWORK,
        onchain_address=payout.destination,
        onchain_payout_id=payout.payout_id,
    )


def _sats(data: Payload, field: str) -> Optional[int]:
    paths: tuple[FieldPath, ...] = _SAT_PATHS[field]
    return pick_sats(data.body, paths, ())


def _payout_id(data: Payload, body: Any) -> str:
    payout_id = data.string(("payout_id",), ("payoutId",), ("id",))
    if not payout_id:
        raise WalletError(
            "onchain_response_invalid",
            "Onchain payout response missing payout_id",
            {"response": body},
        )
    return payout_id


def _kickoff(data: Payload) -> Optional[PayoutKickoff]:
    raw = data.get("kickoff")
    if not isinstance(raw, dict):
        return None
    return PayoutKickoff(
        enqueued=raw.get("enqueued") is True,
        workflow=as_string(raw.get("workflow")),
        kickoff_id=as_string(raw.get("kickoff_id")) or as_string(raw.get("kickoffId")),
    )
