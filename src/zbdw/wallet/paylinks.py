"""zbd.ai paylink client."""

from typing import Any, Optional
from urllib.parse import quote

from ..config import DEFAULT_AI_BASE_URL, WalletSettings
from ..models.paylink import PaylinkResult
from ..paylink import parse_paylink, parse_paylink_list
from .transport import PAYLINK_ERRORS, ApiTransport


class PaylinkClient:
    """Create, read, list and cancel hosted paylinks on zbd.ai."""

    AUTH_HEADER = "x-api-key"

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
    def from_settings(cls, settings: WalletSettings, api_key: str) -> "PaylinkClient":
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
            auth_header=self.AUTH_HEADER,
            errors=PAYLINK_ERRORS,
        )

    def create(self, amount_sats: int) -> PaylinkResult:
        return parse_paylink(self._request("POST", "/api/paylinks", {"amount_sats": amount_sats}))

    def get(self, paylink_id: str) -> PaylinkResult:
        return parse_paylink(self._request("GET", f"/api/paylinks/{quote(paylink_id, safe='')}"))

    def list(self) -> list[PaylinkResult]:
        return parse_paylink_list(self._request("GET", "/api/paylinks"))

    def cancel(self, paylink_id: str) -> PaylinkResult:
        return parse_paylink(self._request("POST", f"/api/paylinks/{quote(paylink_id, safe='')}/cancel"))
