"""Tests for paylink lifecycle normalization and settlement projection."""

import pytest

from zbdw.errors import WalletError
from zbdw.models.wallet import PaymentDetail
from zbdw.paylink import (
    build_settlement_record,
    is_terminal,
    map_settlement_status,
    normalize_lifecycle,
    parse_paylink,
    parse_paylink_list,
    project_lifecycle,
    settlement_attempt_id,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("active", "active"),
        ("PAID", "paid"),
        ("completed", "paid"),
        ("cancelled", "dead"),
        ("canceled", "dead"),
        ("expired", "expired"),
        ("something-new", "created"),
        (None, "created"),
    ],
)
def test_normalize_lifecycle(raw, expected):
    assert normalize_lifecycle(raw) == expected


@pytest.mark.parametrize(
    "status,expected",
    [
        ("completed", "completed"),
        ("paid", "completed"),
        ("settled", "completed"),
        ("failed", "failed"),
        ("error", "failed"),
        ("cancelled", "failed"),
        ("expired", "pending"),
        ("canceled", "pending"),
        ("pending", "pending"),
        ("processing", "pending"),
    ],
)
def test_map_settlement_status(status, expected):
    assert map_settlement_status(status) == expected


def test_project_lifecycle_completed_is_paid():
    assert project_lifecycle("completed", "active") == "paid"


def test_project_lifecycle_failed():
    assert project_lifecycle("failed", "active") == "dead"
    assert project_lifecycle("failed", "expired") == "expired"


@pytest.mark.parametrize("terminal", ["paid", "expired", "dead"])
def test_pending_never_revives_terminal_lifecycle(terminal):
    assert project_lifecycle("pending", terminal) == terminal
    assert is_terminal(project_lifecycle("pending", terminal))


def test_project_lifecycle_pending_keeps_open_states():
    assert project_lifecycle("pending", "created") == "created"
    assert project_lifecycle("pending", "active") == "active"
    assert project_lifecycle("pending", None) == "active"


def test_parse_paylink_top_level():
    paylink = parse_paylink(
        {
            "id": "pl_001",
            "url": "https://zbd.ai/paylinks/pl_001",
            "status": "active",
            "lifecycle": "active",
            "amount_sats": 250,
            "created_at": "2026-02-26T00:00:00.000Z",
            "updated_at": "2026-02-26T00:00:00.000Z",
        }
    )

    assert paylink.id == "pl_001"
    assert paylink.lifecycle == "active"
    assert paylink.amount_sats == 250
    assert paylink.summary(include_timestamps=False) == {
        "id": "pl_001",
        "url": "https://zbd.ai/paylinks/pl_001",
        "status": "active",
        "lifecycle": "active",
        "amount_sats": 250,
    }


def test_parse_paylink_envelope_with_attempt_pointer():
    paylink = parse_paylink(
        {
            "paylink": {"id": "pl_pending", "status": "active", "lifecycle": "active", "amount_sats": 120},
            "latestAttempt": {"id": "ch_pending_001"},
        }
    )

    assert paylink.id == "pl_pending"
    assert paylink.latest_attempt_id == "ch_pending_001"
    assert settlement_attempt_id(paylink) == "ch_pending_001"


def test_parse_paylink_under_data():
    paylink = parse_paylink({"data": {"id": "pl_001", "status": "completed"}})

    assert paylink.status == "completed"
    assert paylink.lifecycle == "paid"
    assert paylink.amount_sats is None


def test_settlement_attempt_prefers_paid_pointer():
    paylink = parse_paylink(
        {
            "id": "pl_001",
            "status": "active",
            "paid_payment_id": "ch_paid",
            "latest_attempt_id": "ch_latest",
            "active_attempt_id": "ch_active",
        }
    )
    assert settlement_attempt_id(paylink) == "ch_paid"


def test_parse_paylink_missing_id():
    with pytest.raises(WalletError) as exc_info:
        parse_paylink({"data": {"status": "active"}})

    assert exc_info.value.code == "paylink_response_invalid"


def test_parse_paylink_list_shapes():
    item = {"id": "pl_001", "status": "active"}
    assert [p.id for p in parse_paylink_list({"paylinks": [item]})] == ["pl_001"]
    assert [p.id for p in parse_paylink_list({"data": {"paylinks": [item]}})] == ["pl_001"]
    assert [p.id for p in parse_paylink_list({"data": [item]})] == ["pl_001"]
    assert [p.id for p in parse_paylink_list([item])] == ["pl_001"]


def test_build_settlement_record_paid():
    paylink = parse_paylink(
        {
            "paylink": {"id": "pl_paid", "status": "active", "lifecycle": "active", "amount_sats": 333},
            "latestAttempt": {"id": "ch_paid_001"},
        }
    )
    detail = PaymentDetail(
        id="ch_paid_001",
        kind="receive",
        amount_sats=333,
        fee_sats=0,
        status="completed",
        preimage="pre_paid_001",
        timestamp="2026-02-26T11:00:11.000Z",
    )

    record = build_settlement_record(paylink, "ch_paid_001", detail)

    assert record.to_json_dict() == {
        "id": "ch_paid_001",
        "type": "receive",
        "amount_sats": 333,
        "status": "completed",
        "timestamp": "2026-02-26T11:00:11.000Z",
        "preimage": "pre_paid_001",
        "source": "paylink",
        "paylink_id": "pl_paid",
        "paylink_attempt_id": "ch_paid_001",
        "paylink_lifecycle": "paid",
        "paylink_amount_sats": 333,
    }


def test_expired_attempt_keeps_active_paylink_open():
    paylink = parse_paylink(
        {
            "paylink": {"id": "pl_open", "status": "active", "lifecycle": "active", "amount_sats": 100},
            "latestAttempt": {"id": "ch_lapsed_001"},
        }
    )
    detail = PaymentDetail(
        id="ch_lapsed_001",
        kind="receive",
        amount_sats=100,
        fee_sats=0,
        status="expired",
        timestamp="2026-02-26T11:00:11.000Z",
    )

    record = build_settlement_record(paylink, "ch_lapsed_001", detail)

    assert record.status == "pending"
    assert record.paylink_lifecycle == "active"
