"""Domain error type for zbdw."""

from typing import Any, Optional


class WalletError(Exception):
    """Error carrying a stable machine-readable code.

    Every failure surfaced by the CLI is a WalletError; the code, message and
    optional details are rendered as the JSON error envelope.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
        exit_code: int = 1,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.exit_code = exit_code

    def to_envelope(self) -> dict[str, Any]:
        """Build the JSON error envelope for this error."""
        envelope: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details is not None:
            envelope["details"] = self.details
        return envelope

    def __repr__(self) -> str:
        return f"WalletError(code={self.code!r}, message={self.message!r})"
