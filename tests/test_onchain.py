"""Tests for the onchain payout state machine and parsers."""

import pytest

from zbdw.errors import WalletError
from zbdw.models.onchain import dump_payout
from zbdw.onchain import (
    PAYOUT_STATUSES,
    build_payout_record,
    can_retry_claim,
    is_terminal,
    next_status,
    parse_created,
    parse_quote,
    parse_retry,
    parse_status,
    require_consent,
)


def test_terminal_statuses():
    assert {s for s in PAYOUT_STATUSES if is_terminal(s)} == {
        "succeeded",
        "failed_invoice_expired",
        "failed_lockup",
        "refunded",
        "manual_review",
    }
    assert not is_terminal("queued")
    assert not is_terminal("unknown_status")


def test_only_expired_invoice_can_retry():
    assert can_retry_claim("failed_invoice_expired")
    assert next_status("failed_invoice_expired", "retry_claim") == "queued"
    assert next_status("succeeded", "retry_claim") is None
    assert not can_retry_claim("queued")


def test_require_consent():
    require_consent(True)

    with pytest.raises(WalletError) as exc_info:
        require_consent(False)

    assert exc_info.value.code == "accept_terms_required"
    assert exc_info.value.message == "Onchain send requires --accept-terms to confirm consent"


def test_parse_quote():
    quote = parse_quote(
        {
            "data": {
                "quote_id": "quote_001",
                "amount_sats": 210,
                "fee_sats": 3,
                "total_sats": 213,
                "destination": "bc1qquotedestination",
                "expires_at": "2026-02-27T00:00:00.000Z",
            }
        }
    )

    assert quote.model_dump() == {
        "quote_id": "quote_001",
        "amount_sats": 210,
        "fee_sats": 3,
        "total_sats": 213,
        "destination": "bc1qquotedestination",
        "expires_at": "2026-02-27T00:00:00.000Z",
    }


def test_parse_created_coerces_string_amount():
    created = parse_created(
        {
            "data": {
                "payout_id": "payout_001",
                "status": "created",
                "amount_sats": "210",
                "destination": "bc1qquotedestination",
                "request_id": "req_001",
                "kickoff": {"enqueued": True, "workflow": "payout.create", "kickoff_id": "kickoff_001"},
            }
        }
    )

    assert dump_payout(created) == {
        "payout_id": "payout_001",
        "status": "created",
        "amount_sats": 210,
        "destination": "bc1qquotedestination",
        "request_id": "req_001",
        "kickoff": {"enqueued": True, "workflow": "payout.create", "kickoff_id": "kickoff_001"},
    }


def test_parse_status_keeps_null_fields_and_drops_missing_kickoff():
    status = parse_status(
        {
            "data": {
                "payout_id": "payout_terminal_refunded",
                "status": "refunded",
                "amount_sats": 210,
                "destination": "bc1qterminaldestination",
                "txid": "tx_refund_001",
                "failure_code": None,
            }
        }
    )

    assert dump_payout(status) == {
        "payout_id": "payout_terminal_refunded",
        "status": "refunded",
        "amount_sats": 210,
        "destination": "bc1qterminaldestination",
        "txid": "tx_refund_001",
        "failure_code": None,
    }


def test_parse_retry():
    retried = parse_retry({"data": {"payout_id": "payout_001", "status": "queued"}})
    assert retried.payout_id == "payout_001"
    assert retried.status == "queued"


def test_parse_missing_payout_id():
    with pytest.raises(WalletError) as exc_info:
        parse_status({"data": {"status": "queued"}})

    assert exc_info.value.code == "onchain_response_invalid"


def test_build_payout_record():
    created = parse_created(
        {"data": {"payout_id": "payout_cli_001", "status": "queued", "amount_sats": 210, "destination": "bc1q"}}
    )

    record = build_payout_record(created, timestamp="2026-02-27T10:00:00.000Z")

    assert record.to_json_dict() == {
        "id": "payout_cli_001",
        "type": "send",
        "amount_sats": 210,
        "status": "queued",
        "timestamp": "2026-02-27T10:00:00.000Z",
        "source": "onchain",
        "onchain_network": "bitcoin",
        "onchain_address": "bc1q",
        "onchain_payout_id": "payout_cli_001",
    }
