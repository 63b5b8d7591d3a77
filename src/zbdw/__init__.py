"""zbdw - Lightning wallet CLI with a local payment ledger."""

__version__ = "0.1.0"
