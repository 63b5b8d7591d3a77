"""Tests for settings, wallet config and API key resolution."""

import json
from pathlib import Path

import pytest

from zbdw.config import (
    DEFAULT_AI_BASE_URL,
    DEFAULT_API_BASE_URL,
    DEFAULT_HTTP_TIMEOUT,
    WalletConfig,
    WalletSettings,
    resolve_api_key,
)
from zbdw.errors import WalletError
from zbdw.paths import WalletPaths

ENV_VARS = [
    "ZBD_WALLET_DIR",
    "ZBD_WALLET_CONFIG",
    "ZBD_WALLET_PAYMENTS",
    "ZBD_WALLET_PAYLINKS",
    "ZBD_API_BASE_URL",
    "ZBD_AI_BASE_URL",
    "ZBD_API_KEY",
    "ZBD_HTTP_TIMEOUT",
    "ZBDW_NO_PROGRESS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestResolveApiKey:
    def test_flag_wins(self):
        assert resolve_api_key("flag-key", "env-key", "config-key") == ("flag-key", "flag")

    def test_env_beats_config(self):
        assert resolve_api_key(None, "env-key", "config-key") == ("env-key", "env")

    def test_config_fallback(self):
        assert resolve_api_key(None, None, "config-key") == ("config-key", "config")

    def test_blank_values_are_ignored(self):
        assert resolve_api_key("  ", "", " config-key ") == ("config-key", "config")

    def test_config_fallback_can_be_disabled(self):
        with pytest.raises(WalletError) as exc_info:
            resolve_api_key(None, None, "config-key", allow_config_fallback=False)

        assert exc_info.value.code == "missing_api_key"

    def test_missing_everywhere(self):
        with pytest.raises(WalletError) as exc_info:
            resolve_api_key()

        assert exc_info.value.code == "missing_api_key"
        assert exc_info.value.message == "API key is required. Provide --key or set ZBD_API_KEY."


class TestWalletConfig:
    def test_save_and_load(self, tmp_path):
        config_file = tmp_path / "nested" / "config.json"

        WalletConfig(api_key="key-1", lightning_address="agent@zbd.ai").save(config_file)

        assert json.loads(config_file.read_text()) == {"apiKey": "key-1", "lightningAddress": "agent@zbd.ai"}
        loaded = WalletConfig.load(config_file)
        assert loaded.api_key == "key-1"
        assert loaded.lightning_address == "agent@zbd.ai"
        assert not (tmp_path / "nested" / "config.json.tmp").exists()

    def test_load_missing(self, tmp_path):
        assert WalletConfig.load(tmp_path / "absent.json") is None

    def test_load_invalid_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        assert WalletConfig.load(config_file) is None


class TestWalletSettings:
    def test_defaults(self, clean_env):
        settings = WalletSettings.from_env()

        assert settings.wallet_dir == Path.home() / ".zbd-wallet"
        assert settings.api_base_url == DEFAULT_API_BASE_URL
        assert settings.ai_base_url == DEFAULT_AI_BASE_URL
        assert settings.env_api_key is None
        assert settings.show_progress is True

    def test_env_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("ZBD_WALLET_DIR", str(clean_env / "w"))
        monkeypatch.setenv("ZBD_WALLET_PAYMENTS", str(clean_env / "elsewhere" / "p.json"))
        monkeypatch.setenv("ZBD_API_BASE_URL", "https://api.example.test/")
        monkeypatch.setenv("ZBD_API_KEY", "env-key")
        monkeypatch.setenv("ZBD_HTTP_TIMEOUT", "5")
        monkeypatch.setenv("ZBDW_NO_PROGRESS", "1")

        settings = WalletSettings.from_env()
        paths = WalletPaths.from_settings(settings)

        assert settings.api_base_url == "https://api.example.test"
        assert settings.env_api_key == "env-key"
        assert settings.http_timeout == 5.0
        assert settings.show_progress is False
        assert paths.config_file == clean_env / "w" / "config.json"
        assert paths.payments_file == clean_env / "elsewhere" / "p.json"
        assert paths.paylinks_file == clean_env / "w" / "paylinks.json"

    def test_repo_config(self, clean_env):
        (clean_env / "pyproject.toml").write_text("[project]\nname = 'agent'\n")
        (clean_env / ".zbdw").mkdir()
        (clean_env / ".zbdw" / "config.toml").write_text(
            '[wallet]\ndir = "wallet-data"\n\n[api]\nai_base_url = "https://ai.example.test"\n'
        )

        settings = WalletSettings.from_env()

        assert settings.wallet_dir == Path("wallet-data")
        assert settings.ai_base_url == "https://ai.example.test"
        assert settings.api_base_url == DEFAULT_API_BASE_URL

    def test_env_beats_repo_config(self, clean_env, monkeypatch):
        (clean_env / ".git").mkdir()
        (clean_env / ".zbdw").mkdir()
        (clean_env / ".zbdw" / "config.toml").write_text('[api]\nbase_url = "https://repo.example.test"\n')
        monkeypatch.setenv("ZBD_API_BASE_URL", "https://env.example.test")

        assert WalletSettings.from_env().api_base_url == "https://env.example.test"

    @pytest.mark.parametrize("value", ["soon", "-1", "0", "nan"])
    def test_bad_timeout_falls_back_to_default(self, clean_env, monkeypatch, value):
        monkeypatch.setenv("ZBD_HTTP_TIMEOUT", value)

        assert WalletSettings.from_env().http_timeout == DEFAULT_HTTP_TIMEOUT
