"""Configuration management for zbdw."""

import json
import logging
import math
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import WalletError

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.zbdpay.com"
DEFAULT_AI_BASE_URL = "https://zbd.ai"
DEFAULT_HTTP_TIMEOUT = 30.0


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .zbdw/config.toml if it exists."""
    config_file = repo_root / ".zbdw" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring malformed {config_file}: {e}")
        return None


def _get_repo_config_value(data: Optional[dict], keys: list[str]) -> Optional[str]:
    """Safely get a nested repo config value."""
    if not data:
        return None
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    if isinstance(current, str):
        return current
    return None


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        parsed = 0.0
    if not math.isfinite(parsed) or parsed <= 0:
        logger.warning(f"Ignoring {name}={value!r}: expected a positive number of seconds")
        return default
    return parsed


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else None


class WalletConfig(BaseModel):
    """Persisted wallet identity (config.json).

    Keys on disk stay camelCase: ``{"apiKey": ..., "lightningAddress": ...}``.
    """

    api_key: Optional[str] = Field(default=None, alias="apiKey")
    lightning_address: Optional[str] = Field(default=None, alias="lightningAddress")

    model_config = {"populate_by_name": True}

    @classmethod
    def load(cls, config_file: Path) -> Optional["WalletConfig"]:
        """Load the wallet config; None when missing or unreadable."""
        if not config_file.exists():
            return None

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load wallet config {config_file}: {e}")
            return None

    def save(self, config_file: Path) -> None:
        """Save the wallet config atomically."""
        config_file.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(by_alias=True, exclude_none=True)

        temp_file = config_file.with_name(config_file.name + ".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(json.dumps(data, indent=2) + "\n")
            temp_file.replace(config_file)
        except OSError as e:
            logger.error(f"Failed to save wallet config to {config_file}: {e}")
            temp_file.unlink(missing_ok=True)
            raise


class WalletSettings(BaseModel):
    """Runtime settings resolved once per invocation."""

    wallet_dir: Path = Field(default_factory=lambda: Path.home() / ".zbd-wallet")
    config_file: Optional[Path] = Field(default=None, description="Override for config.json")
    payments_file: Optional[Path] = Field(default=None, description="Override for payments.json")
    paylinks_file: Optional[Path] = Field(default=None, description="Override for paylinks.json")
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL)
    ai_base_url: str = Field(default=DEFAULT_AI_BASE_URL)
    env_api_key: Optional[str] = Field(default=None, description="ZBD_API_KEY, if set")
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT)
    show_progress: bool = Field(default=True)

    @classmethod
    def from_env(cls) -> "WalletSettings":
        """Load settings with precedence: environment, .zbdw/config.toml, defaults."""
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd()))
        repo_wallet_dir = _get_repo_config_value(repo_config, ["wallet", "dir"])

        wallet_dir = _env_path("ZBD_WALLET_DIR") or (
            Path(repo_wallet_dir).expanduser() if repo_wallet_dir else Path.home() / ".zbd-wallet"
        )

        return cls(
            wallet_dir=wallet_dir,
            config_file=_env_path("ZBD_WALLET_CONFIG"),
            payments_file=_env_path("ZBD_WALLET_PAYMENTS"),
            paylinks_file=_env_path("ZBD_WALLET_PAYLINKS"),
            api_base_url=(
                os.environ.get("ZBD_API_BASE_URL")
                or _get_repo_config_value(repo_config, ["api", "base_url"])
                or DEFAULT_API_BASE_URL
            ).rstrip("/"),
            ai_base_url=(
                os.environ.get("ZBD_AI_BASE_URL")
                or _get_repo_config_value(repo_config, ["api", "ai_base_url"])
                or DEFAULT_AI_BASE_URL
            ).rstrip("/"),
            env_api_key=os.environ.get("ZBD_API_KEY"),
            http_timeout=_env_float("ZBD_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            show_progress=not _env_bool("ZBDW_NO_PROGRESS", False),
        )


def _normalize_api_key(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def resolve_api_key(
    flag_key: Optional[str] = None,
    env_key: Optional[str] = None,
    config_key: Optional[str] = None,
    allow_config_fallback: bool = True,
) -> tuple[str, Literal["flag", "env", "config"]]:
    """Pick the API key with precedence flag > environment > config file.

    Returns:
        Tuple of (api_key, source)

    Raises:
        WalletError: ``missing_api_key`` when no non-blank key is available
    """
    key = _normalize_api_key(flag_key)
    if key:
        return key, "flag"

    key = _normalize_api_key(env_key)
    if key:
        return key, "env"

    if allow_config_fallback:
        key = _normalize_api_key(config_key)
        if key:
            return key, "config"

    raise WalletError("missing_api_key", "API key is required. Provide --key or set ZBD_API_KEY.")
