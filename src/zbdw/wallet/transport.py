"""HTTP transport shared by the ZBD API and zbd.ai clients."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..config import DEFAULT_HTTP_TIMEOUT
from ..errors import WalletError
from ..normalize import as_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorPolicy:
    """How a family of endpoints reports failures.

    ``upstream_envelope`` endpoints answer errors with ``{"error", "message"}``;
    when present those become the WalletError code and message.
    """

    unreachable_code: str
    unreachable_message: str
    failure_code: str
    failure_message: str
    upstream_envelope: bool = False


ZBD_API_ERRORS = ErrorPolicy(
    unreachable_code="wallet_unreachable",
    unreachable_message="Failed to reach ZBD API",
    failure_code="wallet_request_failed",
    failure_message="ZBD API request failed",
)

REGISTER_ERRORS = ErrorPolicy(
    unreachable_code="register_unreachable",
    unreachable_message="Failed to reach registration service",
    failure_code="register_failed",
    failure_message="Failed to register wallet identity",
)

PAYLINK_ERRORS = ErrorPolicy(
    unreachable_code="paylink_unreachable",
    unreachable_message="Failed to reach paylink service",
    failure_code="paylink_request_failed",
    failure_message="Paylink request failed",
    upstream_envelope=True,
)

ONCHAIN_ERRORS = ErrorPolicy(
    unreachable_code="onchain_unreachable",
    unreachable_message="Failed to reach onchain payout service",
    failure_code="onchain_request_failed",
    failure_message="Onchain payout request failed",
    upstream_envelope=True,
)


def safe_json(text: str) -> Any:
    """Parse a response body; empty is None, non-JSON is returned as text."""
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class ApiTransport:
    """Thin wrapper over ``requests`` that maps failures to WalletError."""

    def __init__(self, timeout: float = DEFAULT_HTTP_TIMEOUT):
        self.timeout = timeout

    def request(
        self,
        method: str,
        base_url: str,
        path: str,
        api_key: Optional[str] = None,
        body: Optional[dict[str, Any]] = None,
        auth_header: str = "apikey",
        errors: ErrorPolicy = ZBD_API_ERRORS,
    ) -> Any:
        """Send one request and return the parsed response body.

        Args:
            method: HTTP method
            base_url: Service root, without trailing slash
            path: Endpoint path starting with ``/``
            api_key: Sent in ``auth_header`` when given
            body: JSON request body
            auth_header: Header carrying the API key
            errors: Error codes for this endpoint family

        Raises:
            WalletError: unreachable, ``invalid_api_key`` on 401, or the
                policy's failure code for any other non-2xx status
        """
        url = f"{base_url}{path}"
        headers = {"content-type": "application/json"}
        if api_key:
            headers[auth_header] = api_key

        logger.debug(f"{method} {url}")
        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.debug(f"{method} {url} failed: {e}")
            raise WalletError(errors.unreachable_code, f"{errors.unreachable_message} at {base_url}")

        payload = safe_json(response.text)
        if 200 <= response.status_code < 300:
            return payload

        logger.debug(f"{method} {url} returned {response.status_code}")
        raise _response_error(errors, response.status_code, payload, path)


def _response_error(errors: ErrorPolicy, status: int, payload: Any, path: str) -> WalletError:
    # 401 wins over any upstream error body
    if status == 401:
        return WalletError("invalid_api_key", "API key rejected by ZBD API")

    if errors.upstream_envelope and isinstance(payload, dict):
        code = as_string(payload.get("error"))
        if code:
            message = as_string(payload.get("message")) or errors.failure_message
            return WalletError(code, message, {"status": status, "path": path, "response": payload})

    return WalletError(
        errors.failure_code,
        errors.failure_message,
        {"status": status, "response": payload, "path": path},
    )
