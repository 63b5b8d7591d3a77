"""Paylink lifecycle: normalization and settlement projection.

Canonical lifecycle::

    created -> active -> paid
                      -> expired
                      -> dead

``paid``, ``expired`` and ``dead`` are terminal.
"""

from typing import Any, Literal, Optional

from .errors import WalletError
from .models.ledger import PAYLINK_LIFECYCLES, PaylinkLifecycle, PaymentRecord
from .models.paylink import PaylinkResult
from .models.wallet import PaymentDetail
from .normalize import FieldPath, Payload, as_string, pick_sats, pick_string

TERMINAL_LIFECYCLES: frozenset[str] = frozenset({"paid", "expired", "dead"})

SettlementStatus = Literal["completed", "failed", "pending"]

_LEGACY_LIFECYCLES = {
    "completed": "paid",
    "cancelled": "dead",
    "canceled": "dead",
}

_COMPLETED_STATUSES = {"completed", "paid", "settled"}
_FAILED_STATUSES = {"failed", "error", "cancelled"}

_PAID_POINTER_PATHS: tuple[FieldPath, ...] = (
    ("paid_payment_id",),
    ("paidPaymentId",),
    ("paidAttempt", "id"),
    ("paid_attempt", "id"),
)
_LATEST_POINTER_PATHS: tuple[FieldPath, ...] = (
    ("latest_attempt_id",),
    ("latestAttemptId",),
    ("latestAttempt", "id"),
    ("latest_attempt", "id"),
)
_ACTIVE_POINTER_PATHS: tuple[FieldPath, ...] = (
    ("active_attempt_id",),
    ("activeAttemptId",),
    ("activeAttempt", "id"),
    ("active_attempt", "id"),
)


def is_terminal(lifecycle: Optional[str]) -> bool:
    return lifecycle in TERMINAL_LIFECYCLES


def normalize_lifecycle(value: Any) -> PaylinkLifecycle:
    """Map an upstream status or lifecycle string to the canonical lifecycle.

    Unrecognized values map to ``created``; nothing unknown is assumed
    terminal.
    """
    text = (as_string(value) or "").lower()
    if text in PAYLINK_LIFECYCLES:
        return text  # type: ignore[return-value]
    return _LEGACY_LIFECYCLES.get(text, "created")  # type: ignore[return-value]


def map_settlement_status(status: str) -> SettlementStatus:
    """Collapse a charge status into completed / failed / pending."""
    normalized = status.strip().lower()
    if normalized in _COMPLETED_STATUSES:
        return "completed"
    if normalized in _FAILED_STATUSES:
        return "failed"
    return "pending"


def project_lifecycle(
    settlement: SettlementStatus,
    current: Optional[PaylinkLifecycle],
) -> PaylinkLifecycle:
    """Derive the lifecycle recorded alongside a settlement read.

    Args:
        settlement: Normalized status of the paylink's most relevant charge
        current: Lifecycle the paylink itself reports

    Returns:
        ``paid`` for a completed charge; ``dead`` for a failed one unless the
        link already reports ``expired``; otherwise the current lifecycle.
        A pending charge never revives a terminal link.
    """
    if settlement == "completed":
        return "paid"

    if settlement == "failed":
        return "expired" if current == "expired" else "dead"

    if current in ("created", "active") or is_terminal(current):
        return current  # type: ignore[return-value]

    return "active"


def settlement_attempt_id(paylink: PaylinkResult) -> Optional[str]:
    """Charge id to reconcile: paid attempt, then latest, then active."""
    return paylink.paid_payment_id or paylink.latest_attempt_id or paylink.active_attempt_id


def parse_paylink(body: Any) -> PaylinkResult:
    """Build a PaylinkResult from any of the upstream envelope shapes.

    Accepts the paylink at the top level, under ``data``, under ``paylink``,
    or under ``data.paylink``. Attempt pointers are looked up on the paylink
    object first and then on the envelope.

    Raises:
        WalletError: ``paylink_response_invalid`` when no paylink id is present
    """
    envelope = Payload(body)
    inner = _paylink_object(envelope)
    if inner is None:
        raise WalletError(
            "paylink_response_invalid",
            "Paylink response missing id",
            {"response": body},
        )

    raw_status = inner.string(("status",), ("state",))
    raw_lifecycle = inner.string(("lifecycle",))

    return PaylinkResult(
        id=inner.string(("id",), ("paylink_id",), ("paylinkId",)),
        url=inner.string(("url",), ("checkout_url",), ("checkoutUrl",)),
        status=raw_status or raw_lifecycle or "created",
        lifecycle=normalize_lifecycle(raw_lifecycle or raw_status),
        amount_sats=pick_sats(inner.body, (("amount_sats",), ("amountSats",)), ()),
        created_at=inner.string(("created_at",), ("createdAt",)),
        updated_at=inner.string(("updated_at",), ("updatedAt",)),
        paid_payment_id=_pointer(inner, envelope, _PAID_POINTER_PATHS),
        latest_attempt_id=_pointer(inner, envelope, _LATEST_POINTER_PATHS),
        active_attempt_id=_pointer(inner, envelope, _ACTIVE_POINTER_PATHS),
    )


def parse_paylink_list(body: Any) -> list[PaylinkResult]:
    """Parse a paylink listing (``paylinks``, ``data.paylinks``, ``data`` or a bare list)."""
    items: Any = body
    if isinstance(body, dict):
        for path in (("paylinks",), ("data", "paylinks"), ("data",)):
            candidate = Payload(body).get(*path)
            if isinstance(candidate, list):
                items = candidate
                break

    if not isinstance(items, list):
        raise WalletError(
            "paylink_response_invalid",
            "Paylink list response missing paylinks",
            {"response": body},
        )

    return [parse_paylink(item) for item in items if isinstance(item, dict)]


def build_settlement_record(
    paylink: PaylinkResult,
    attempt_id: str,
    detail: PaymentDetail,
) -> PaymentRecord:
    """Project a paylink's charge settlement into a ledger record.

    The record id is the attempt id, so repeated lookups of the same
    paylink resolve to the same record.
    """
    settlement = map_settlement_status(detail.status)
    return PaymentRecord(
        id=attempt_id,
        kind="receive",
        amount_sats=detail.amount_sats,
        status=settlement,
        timestamp=detail.timestamp,
        preimage=detail.preimage,
        source="paylink",
        paylink_id=paylink.id,
        paylink_attempt_id=attempt_id,
        paylink_lifecycle=project_lifecycle(settlement, paylink.lifecycle),
        paylink_amount_sats=paylink.amount_sats,
    )


def _paylink_object(envelope: Payload) -> Optional[Payload]:
    for path in (("paylink",), ("data", "paylink"), ("data",), ()):
        candidate = envelope.get(*path) if path else envelope.body
        if isinstance(candidate, dict) and pick_string(candidate, ("id",), ("paylink_id",), ("paylinkId",)):
            return Payload(candidate)
    return None


def _pointer(inner: Payload, envelope: Payload, paths: tuple[FieldPath, ...]) -> Optional[str]:
    return inner.string(*paths) or envelope.string(*paths)
