"""zbd.ai onchain payout client."""

import logging
from typing import Any, Optional
from urllib.parse import quote as url_quote

from ..config import DEFAULT_AI_BASE_URL, WalletSettings
from ..models.onchain import (
    OnchainPayoutCreated,
    OnchainPayoutStatus,
    OnchainQuote,
    OnchainRetryResult,
)
from ..onchain import parse_created, parse_quote, parse_retry, parse_status
from .transport import ONCHAIN_ERRORS, ApiTransport

logger = logging.getLogger(__name__)


class PayoutClient:
    """Quote, create, inspect and retry onchain payouts."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_AI_BASE_URL,
        transport: Optional[ApiTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport or ApiTransport()

    @classmethod
    def from_settings(cls, settings: WalletSettings, api_key: str) -> "PayoutClient":
        return cls(
            api_key,
            base_url=settings.ai_base_url,
            transport=ApiTransport(timeout=settings.http_timeout),
        )

    def _request(self, method: str, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return self.transport.request(
            method,
            self.base_url,
            path,
            api_key=self.api_key,
            body=body,
            errors=ONCHAIN_ERRORS,
        )

    def quote(self, amount_sats: int, destination: str) -> OnchainQuote:
        body = self._request(
            "POST",
            "/api/payouts/quote",
            {"amount_sats": amount_sats, "destination": destination},
        )
        return parse_quote(body)

    def create(
        self,
        amount_sats: int,
        destination: str,
        accept_terms: bool,
        payout_id: Optional[str] = None,
    ) -> OnchainPayoutCreated:
        """Submit a payout.

        ``accept_terms`` is forwarded as given; the CLI refuses to call this
        without consent, and the service rejects ``False`` on its own.
        """
        payload: dict[str, Any] = {
            "amount_sats": amount_sats,
            "destination": destination,
            "accept_terms": accept_terms,
        }
        if payout_id:
            payload["payout_id"] = payout_id

        created = parse_created(self._request("POST", "/api/payouts", payload))
        logger.info(f"Created onchain payout {created.payout_id} ({created.status})")
        return created

    def status(self, payout_id: str) -> OnchainPayoutStatus:
        return parse_status(self._request("GET", f"/api/payouts/{url_quote(payout_id, safe='')}"))

    def retry_claim(self, payout_id: str) -> OnchainRetryResult:
        """Ask the service to retry the claim; its verdict is final."""
        body = self._request("POST", f"/api/payouts/{url_quote(payout_id, safe='')}/retry-claim")
        return parse_retry(body)
