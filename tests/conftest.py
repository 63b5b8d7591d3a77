"""Pytest fixtures for zbdw tests."""

import json
from unittest.mock import Mock

import pytest

from zbdw.ledger import PaylinkCache, PaymentLedger
from zbdw.paths import WalletPaths

API_BASE_URL = "https://api.zbd.test"
AI_BASE_URL = "https://ai.zbd.test"


def make_response(status_code=200, body=None):
    """Build a fake ``requests.Response`` carrying a JSON (or raw text) body."""
    response = Mock()
    response.status_code = status_code
    if body is None:
        response.text = ""
    elif isinstance(body, str):
        response.text = body
    else:
        response.text = json.dumps(body)
    return response


class FakeUpstream:
    """Stand-in for ``requests.request`` that routes on (method, url)."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, url, body=None, status_code=200):
        self.routes[(method, url)] = (status_code, body)

    def __call__(self, method, url, headers=None, json=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers or {}, "json": json})
        status_code, body = self.routes.get((method, url), (404, {"error": "not_found"}))
        return make_response(status_code, body)

    def calls_to(self, method, url):
        return [call for call in self.calls if call["method"] == method and call["url"] == url]


@pytest.fixture
def wallet_dir(tmp_path):
    """Create a temporary wallet directory.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to the wallet directory
    """
    path = tmp_path / "wallet"
    path.mkdir()
    return path


@pytest.fixture
def wallet_paths(wallet_dir):
    return WalletPaths(wallet_dir)


@pytest.fixture
def wallet_env(monkeypatch, tmp_path, wallet_paths):
    """Point every zbdw setting at the temporary wallet and fake hosts.

    Returns:
        WalletPaths for the temporary wallet
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ZBD_API_KEY", raising=False)
    monkeypatch.delenv("ZBD_HTTP_TIMEOUT", raising=False)
    monkeypatch.setenv("ZBD_WALLET_DIR", str(wallet_paths.root))
    monkeypatch.setenv("ZBD_WALLET_CONFIG", str(wallet_paths.config_file))
    monkeypatch.setenv("ZBD_WALLET_PAYMENTS", str(wallet_paths.payments_file))
    monkeypatch.setenv("ZBD_WALLET_PAYLINKS", str(wallet_paths.paylinks_file))
    monkeypatch.setenv("ZBD_API_BASE_URL", API_BASE_URL)
    monkeypatch.setenv("ZBD_AI_BASE_URL", AI_BASE_URL)
    monkeypatch.setenv("ZBDW_NO_PROGRESS", "1")
    return wallet_paths


@pytest.fixture
def configured_wallet(wallet_env):
    """Wallet with a saved API key in config.json."""
    wallet_env.config_file.write_text(json.dumps({"apiKey": "config-key-123"}) + "\n", encoding="utf-8")
    return wallet_env


@pytest.fixture
def upstream(monkeypatch):
    """Replace outbound HTTP with a routable fake."""
    fake = FakeUpstream()
    monkeypatch.setattr("zbdw.wallet.transport.requests.request", fake)
    return fake


@pytest.fixture
def payment_ledger(wallet_paths):
    return PaymentLedger(wallet_paths.payments_file)


@pytest.fixture
def paylink_cache(wallet_paths):
    return PaylinkCache(wallet_paths.paylinks_file)
