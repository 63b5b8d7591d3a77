"""Pydantic models for zbdw."""

from .ledger import PAYLINK_LIFECYCLES, PaylinkLifecycle, PaymentRecord
from .onchain import (
    OnchainPayoutCreated,
    OnchainPayoutStatus,
    OnchainQuote,
    OnchainRetryResult,
    PayoutKickoff,
    PayoutStatus,
)
from .paylink import PaylinkMetadataRecord, PaylinkResult
from .wallet import (
    PaymentDetail,
    ReceiveInvoiceResult,
    SendPaymentResult,
    StaticChargeResult,
    WithdrawCreateResult,
    WithdrawStatusResult,
)

__all__ = [
    # Ledger
    "PaymentRecord",
    "PaylinkLifecycle",
    "PAYLINK_LIFECYCLES",
    # Paylinks
    "PaylinkResult",
    "PaylinkMetadataRecord",
    # Onchain
    "PayoutStatus",
    "PayoutKickoff",
    "OnchainQuote",
    "OnchainPayoutCreated",
    "OnchainPayoutStatus",
    "OnchainRetryResult",
    # Wallet
    "ReceiveInvoiceResult",
    "StaticChargeResult",
    "SendPaymentResult",
    "PaymentDetail",
    "WithdrawCreateResult",
    "WithdrawStatusResult",
]
