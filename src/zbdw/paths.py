"""Path management for the zbdw wallet directory."""

from pathlib import Path

from .config import WalletSettings


class WalletPaths:
    """Manages paths within the wallet directory (default ~/.zbd-wallet)."""

    def __init__(
        self,
        root: Path,
        config_file: Path | None = None,
        payments_file: Path | None = None,
        paylinks_file: Path | None = None,
    ):
        """Initialize wallet paths.

        Args:
            root: Wallet directory
            config_file: Explicit config.json location (ZBD_WALLET_CONFIG)
            payments_file: Explicit payments.json location (ZBD_WALLET_PAYMENTS)
            paylinks_file: Explicit paylinks.json location (ZBD_WALLET_PAYLINKS)
        """
        self.root = root

        self.config_file = config_file or root / "config.json"
        self.payments_file = payments_file or root / "payments.json"
        self.paylinks_file = paylinks_file or root / "paylinks.json"

    @classmethod
    def from_settings(cls, settings: WalletSettings) -> "WalletPaths":
        """Create WalletPaths from WalletSettings."""
        return cls(
            settings.wallet_dir,
            config_file=settings.config_file,
            payments_file=settings.payments_file,
            paylinks_file=settings.paylinks_file,
        )
