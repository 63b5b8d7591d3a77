"""ZBD API client for balances, charges, payments and withdrawals."""

import logging
from typing import Any, Optional
from urllib.parse import quote

from ..amounts import msats_string, to_sats
from ..config import DEFAULT_AI_BASE_URL, DEFAULT_API_BASE_URL, WalletSettings
from ..errors import WalletError
from ..models.wallet import (
    PaymentDetail,
    ReceiveInvoiceResult,
    SendPaymentResult,
    StaticChargeResult,
    WithdrawCreateResult,
    WithdrawStatusResult,
)
from ..normalize import FieldPath, Payload, get_at_path, pick_string, to_amount
from ..routing import SendRequest
from .transport import REGISTER_ERRORS, ApiTransport

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Payment request"
WITHDRAW_DESCRIPTION = "Withdrawal request"

# Bounds for a variable-amount static charge, in msats
STATIC_MIN_MSATS = "1000"
STATIC_MAX_MSATS = "500000000"

_BALANCE_MSAT_PATHS: tuple[FieldPath, ...] = (
    ("balanceMsat",),
    ("balance_msat",),
    ("balance",),
    ("data", "balanceMsat"),
    ("data", "balance_msat"),
    ("data", "balance"),
)
_BALANCE_SAT_PATHS: tuple[FieldPath, ...] = (
    ("balanceSats",),
    ("balance_sats",),
    ("data", "balanceSats"),
    ("data", "balance_sats"),
)
_INVOICE_PATHS: tuple[FieldPath, ...] = (
    ("invoice",),
    ("invoiceRequest",),
    ("invoice_request",),
    ("bolt11",),
    ("data", "invoice", "request"),
    ("data", "invoice"),
    ("data", "invoiceRequest"),
    ("data", "invoice_request"),
    ("data", "bolt11"),
)
_PAYMENT_HASH_PATHS: tuple[FieldPath, ...] = (
    ("payment_hash",),
    ("paymentHash",),
    ("data", "payment_hash"),
    ("data", "paymentHash"),
)
_EXPIRES_AT_PATHS: tuple[FieldPath, ...] = (
    ("expires_at",),
    ("expiresAt",),
    ("invoice_expires_at",),
    ("invoiceExpiresAt",),
    ("data", "expires_at"),
    ("data", "expiresAt"),
    ("data", "invoice_expires_at"),
    ("data", "invoiceExpiresAt"),
)
_CHARGE_ID_PATHS: tuple[FieldPath, ...] = (
    ("id",),
    ("charge_id",),
    ("data", "id"),
    ("data", "charge_id"),
)
_LIGHTNING_ADDRESS_PATHS: tuple[FieldPath, ...] = (
    ("lightning_address",),
    ("lightningAddress",),
    ("data", "lightning_address"),
    ("data", "lightningAddress"),
)
_LNURL_PATHS: tuple[FieldPath, ...] = (
    ("lnurl",),
    ("invoice", "request"),
    ("invoice", "uri"),
    ("data", "lnurl"),
    ("data", "invoice", "request"),
    ("data", "invoice", "uri"),
)
_PAYMENT_ID_PATHS: tuple[FieldPath, ...] = (
    ("id",),
    ("payment_id",),
    ("paymentId",),
    ("data", "id"),
    ("data", "payment_id"),
)
_WITHDRAW_ID_PATHS: tuple[FieldPath, ...] = (
    ("id",),
    ("withdraw_id",),
    ("withdrawId",),
    ("data", "id"),
    ("data", "withdraw_id"),
)


def _strip_lightning_scheme(value: str) -> str:
    if value.lower().startswith("lightning:"):
        return value[len("lightning:"):]
    return value


class WalletClient:
    """Client for the ZBD wallet API.

    All amounts are exchanged with the API in msats and returned in sats.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_BASE_URL,
        ai_base_url: str = DEFAULT_AI_BASE_URL,
        transport: Optional[ApiTransport] = None,
    ):
        """Initialize the wallet client.

        Args:
            api_key: ZBD project API key
            base_url: ZBD API root
            ai_base_url: zbd.ai root, used for identity registration
            transport: Shared HTTP transport (a default one is created if None)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.ai_base_url = ai_base_url.rstrip("/")
        self.transport = transport or ApiTransport()

    @classmethod
    def from_settings(cls, settings: WalletSettings, api_key: str) -> "WalletClient":
        return cls(
            api_key,
            base_url=settings.api_base_url,
            ai_base_url=settings.ai_base_url,
            transport=ApiTransport(timeout=settings.http_timeout),
        )

    def _request(self, method: str, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return self.transport.request(method, self.base_url, path, api_key=self.api_key, body=body)

    def register_identity(self) -> str:
        """Register this API key with zbd.ai and return its lightning address.

        Raises:
            WalletError: ``register_unreachable``, ``invalid_api_key`` or
                ``register_failed``
        """
        body = self.transport.request(
            "POST",
            self.ai_base_url,
            "/api/register",
            body={"apiKey": self.api_key},
            errors=REGISTER_ERRORS,
        )

        address = pick_string(
            body,
            ("lightningAddress",),
            ("lightning_address",),
            ("data", "lightningAddress"),
            ("data", "lightning_address"),
        )
        if not address:
            raise WalletError("register_failed", "Registration response missing lightningAddress")

        logger.info(f"Registered wallet identity {address}")
        return address

    def fetch_balance_sats(self) -> int:
        """Current wallet balance in whole sats (msats rounded down)."""
        body = self._request("GET", "/v0/wallet")

        for path in _BALANCE_MSAT_PATHS:
            value = to_amount(get_at_path(body, path))
            if value is not None:
                return to_sats(value)

        for path in _BALANCE_SAT_PATHS:
            value = to_amount(get_at_path(body, path))
            if value is not None:
                return int(value)

        raise WalletError("wallet_response_invalid", "Wallet response missing msat balance value")

    def create_invoice(self, amount_sats: int, description: Optional[str] = None) -> ReceiveInvoiceResult:
        """Create a bolt11 charge for ``amount_sats``."""
        body = self._request(
            "POST",
            "/v0/charges",
            {
                "amount": msats_string(amount_sats),
                "description": (description or "").strip() or DEFAULT_DESCRIPTION,
            },
        )
        payload = Payload(body)

        invoice = payload.string(*_INVOICE_PATHS)
        payment_hash = payload.string(*_PAYMENT_HASH_PATHS)
        expires_at = payload.string(*_EXPIRES_AT_PATHS)
        charge_id = payload.string(*_CHARGE_ID_PATHS) or payment_hash

        if not invoice or not expires_at or not charge_id:
            raise WalletError("receive_failed", "Invoice response missing required fields")

        return ReceiveInvoiceResult(
            id=charge_id,
            invoice=invoice,
            payment_hash=payment_hash,
            expires_at=expires_at,
            amount_sats=amount_sats,
            status=payload.status("pending"),
            timestamp=payload.timestamp(),
        )

    def create_static_charge(
        self,
        amount_sats: Optional[int] = None,
        description: Optional[str] = None,
    ) -> StaticChargeResult:
        """Create a reusable static charge.

        A fixed ``amount_sats`` pins both bounds; otherwise the charge accepts
        anything between 1 sat and 500,000 sats.
        """
        if amount_sats is not None:
            min_amount = max_amount = msats_string(amount_sats)
        else:
            min_amount, max_amount = STATIC_MIN_MSATS, STATIC_MAX_MSATS

        body = self._request(
            "POST",
            "/v0/static-charges",
            {
                "minAmount": min_amount,
                "maxAmount": max_amount,
                "description": (description or "").strip() or DEFAULT_DESCRIPTION,
            },
        )
        payload = Payload(body)

        charge_id = payload.string(*_CHARGE_ID_PATHS)
        lightning_address = payload.string(*_LIGHTNING_ADDRESS_PATHS)
        lnurl = payload.string(*_LNURL_PATHS)

        if not charge_id or not (lightning_address or lnurl):
            raise WalletError("receive_failed", "Static charge response missing required fields")

        return StaticChargeResult(
            charge_id=charge_id,
            lightning_address=lightning_address,
            lnurl=lnurl,
            status=payload.status("active"),
            timestamp=payload.timestamp(),
        )

    def send_payment(self, request: SendRequest) -> SendPaymentResult:
        """Execute a send prepared by ``routing.build_send_request``."""
        body = self._request("POST", request.path, request.payload)
        payload = Payload(body)

        payment_id = payload.string(*_PAYMENT_ID_PATHS)
        if not payment_id:
            raise WalletError("send_failed", "Payment response missing payment id")

        return SendPaymentResult(
            payment_id=payment_id,
            amount_sats=request.amount_sats,
            fee_sats=payload.fee_sats(),
            status=payload.status("pending"),
            preimage=payload.preimage(),
            timestamp=payload.timestamp(),
        )

    def fetch_payment_detail(self, payment_id: str) -> PaymentDetail:
        body = self._request("GET", f"/v0/charges/{quote(payment_id, safe='')}")
        payload = Payload(body)

        kind = payload.string(("type",), ("kind",), ("data", "type")) or "send"

        return PaymentDetail(
            id=payload.string(("id",), ("payment_id",), ("paymentId",), ("charge_id",), ("data", "id"))
            or payment_id,
            kind="receive" if kind.lower() == "receive" else "send",
            amount_sats=payload.sats(),
            fee_sats=payload.fee_sats(),
            status=payload.status("pending"),
            preimage=payload.preimage(),
            timestamp=payload.timestamp(),
        )

    def create_withdraw(self, amount_sats: int) -> WithdrawCreateResult:
        """Create an LNURL-withdraw request the holder can claim."""
        body = self._request(
            "POST",
            "/v0/withdrawal-requests",
            {"amount": msats_string(amount_sats), "description": WITHDRAW_DESCRIPTION},
        )
        payload = Payload(body)

        withdraw_id = payload.string(*_WITHDRAW_ID_PATHS)
        lnurl = payload.string(*_LNURL_PATHS)

        if not withdraw_id or not lnurl:
            raise WalletError("withdraw_failed", "Withdraw creation response missing required fields")

        return WithdrawCreateResult(
            withdraw_id=withdraw_id,
            lnurl=_strip_lightning_scheme(lnurl),
            status=payload.status("pending"),
            amount_sats=amount_sats,
        )

    def fetch_withdraw_status(self, withdraw_id: str) -> WithdrawStatusResult:
        body = self._request("GET", f"/v0/withdrawal-requests/{quote(withdraw_id, safe='')}")
        payload = Payload(body)

        return WithdrawStatusResult(
            withdraw_id=payload.string(*_WITHDRAW_ID_PATHS) or withdraw_id,
            status=payload.status("pending"),
            amount_sats=payload.sats(),
        )
