"""Reconcile upstream settlement state into the local payment ledger."""

import logging
from typing import Optional, Union

from pydantic import ValidationError

from .errors import WalletError
from .ledger import PaymentLedger
from .models.ledger import PaymentRecord
from .models.onchain import OnchainPayoutCreated, OnchainPayoutStatus
from .models.paylink import PaylinkResult
from .models.wallet import PaymentDetail
from .onchain import build_payout_record
from .paylink import build_settlement_record, settlement_attempt_id
from .wallet.client import WalletClient

logger = logging.getLogger(__name__)


class SettlementReconciler:
    """Writes settlement observations into the payment ledger.

    Paylink and payout syncs are best-effort: a failed charge lookup or ledger
    write is logged and the command still returns the upstream result.
    """

    def __init__(self, ledger: PaymentLedger, wallet: Optional[WalletClient] = None):
        """Initialize the reconciler.

        Args:
            ledger: Payment history store
            wallet: ZBD API client, needed for paylink and payment lookups
        """
        self.ledger = ledger
        self.wallet = wallet

    def _require_wallet(self) -> WalletClient:
        if self.wallet is None:
            raise WalletError("internal_error", "Wallet client is not configured")
        return self.wallet

    def sync_paylink_settlement(self, paylink: PaylinkResult) -> Optional[PaymentRecord]:
        """Record the settlement of a paylink's most relevant charge.

        The charge is re-read on every call; the ledger record is keyed by
        attempt id, so only the first observation is stored.

        Returns:
            The projected record, or None when the paylink has no attempt or
            the sync failed
        """
        attempt_id = settlement_attempt_id(paylink)
        if not attempt_id:
            logger.debug(f"Paylink {paylink.id} has no attempt to reconcile")
            return None

        try:
            detail = self._require_wallet().fetch_payment_detail(attempt_id)
            record = build_settlement_record(paylink, attempt_id, detail)
            inserted = self.ledger.append_if_absent(record)
        except (WalletError, OSError, ValidationError) as e:
            logger.warning(f"Settlement sync for paylink {paylink.id} failed: {e}")
            return None

        if inserted:
            logger.info(f"Recorded settlement {attempt_id} for paylink {paylink.id} ({record.status})")
        return record

    def lookup_payment(self, payment_id: str) -> Union[PaymentRecord, PaymentDetail]:
        """Find a payment locally, falling back to the ZBD API.

        A remote hit is cached in the ledger. Upstream failures propagate.
        """
        local = self.ledger.find_by_id(payment_id)
        if local is not None:
            logger.debug(f"Payment {payment_id} found in local ledger")
            return local

        detail = self._require_wallet().fetch_payment_detail(payment_id)
        self.ledger.append_if_absent(
            PaymentRecord(
                id=detail.id,
                kind=detail.kind,
                amount_sats=detail.amount_sats,
                status=detail.status,
                timestamp=detail.timestamp,
                fee_sats=detail.fee_sats,
                preimage=detail.preimage,
            )
        )
        return detail

    def record_payout(self, created: OnchainPayoutCreated) -> PaymentRecord:
        """Append a freshly created payout to the ledger."""
        record = build_payout_record(created)
        self.ledger.append(record)
        return record

    def sync_payout_status(self, status: OnchainPayoutStatus) -> bool:
        """Record a payout seen through a status read, if not already stored.

        Returns:
            True if a new record was written
        """
        try:
            return self.ledger.append_if_absent(build_payout_record(status))
        except (OSError, ValidationError) as e:
            logger.warning(f"Payout sync for {status.payout_id} failed: {e}")
            return False
