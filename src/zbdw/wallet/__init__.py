"""Upstream clients for the ZBD API and zbd.ai."""

from .client import WalletClient
from .paylinks import PaylinkClient
from .payouts import PayoutClient
from .transport import ApiTransport

__all__ = ["ApiTransport", "PaylinkClient", "PayoutClient", "WalletClient"]
