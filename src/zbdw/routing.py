"""Send destination classification and request shaping."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .amounts import msats_string
from .errors import WalletError

SEND_NOTE = "Sent via zbdw"


class DestinationKind(str, Enum):
    BOLT11 = "bolt11"
    LNURL = "lnurl"
    GAMERTAG = "gamertag"
    LN_ADDRESS = "ln_address"


@dataclass(frozen=True)
class SendRequest:
    """Upstream call shape for one send."""

    kind: DestinationKind
    path: str
    payload: dict[str, Any]
    amount_sats: int


def classify_destination(destination: str) -> DestinationKind:
    """Classify a free-text send target; first match wins.

    Raises:
        WalletError: ``unsupported_destination`` carrying the raw destination
    """
    normalized = destination.strip().lower()
    if normalized.startswith("lnbc"):
        return DestinationKind.BOLT11
    if normalized.startswith("lnurl"):
        return DestinationKind.LNURL
    if normalized.startswith("@"):
        return DestinationKind.GAMERTAG
    if "@" in normalized:
        return DestinationKind.LN_ADDRESS

    raise WalletError(
        "unsupported_destination",
        "Unsupported destination format",
        {"destination": destination},
    )


def build_send_request(destination: str, amount_sats: int) -> SendRequest:
    """Map a destination and amount to the endpoint and body to call.

    Bolt11 invoices carry their own amount, so only the invoice is sent.
    Addresses and LNURLs share the ln-address endpoint; gamertags have their
    own. Amounts on those endpoints are msats strings.
    """
    kind = classify_destination(destination)

    if kind is DestinationKind.BOLT11:
        return SendRequest(
            kind=kind,
            path="/v0/payments",
            payload={"invoice": destination.strip()},
            amount_sats=amount_sats,
        )

    if kind in (DestinationKind.LNURL, DestinationKind.LN_ADDRESS):
        return SendRequest(
            kind=kind,
            path="/v0/ln-address/send-payment",
            payload={
                "lnAddress": destination.strip(),
                "amount": msats_string(amount_sats),
                "comment": SEND_NOTE,
            },
            amount_sats=amount_sats,
        )

    gamertag = destination.strip().lstrip("@")
    if not gamertag:
        raise WalletError(
            "invalid_gamertag",
            "Gamertag destination is invalid",
            {"destination": destination},
        )

    return SendRequest(
        kind=kind,
        path="/v0/gamertag/send-payment",
        payload={
            "gamertag": gamertag,
            "amount": msats_string(amount_sats),
            "description": SEND_NOTE,
        },
        amount_sats=amount_sats,
    )
