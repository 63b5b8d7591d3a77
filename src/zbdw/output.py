"""JSON output for zbdw commands.

stdout carries exactly one JSON document per invocation: the command result
on success, or an error envelope on failure. Human-oriented output (progress
spinners, log lines) goes to stderr.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, NoReturn

import click
import typer

from .errors import WalletError

try:
    # Newer typer releases raise from their own bundled copy of click
    from typer._click import exceptions as typer_click_exceptions
except ImportError:
    typer_click_exceptions = click.exceptions

logger = logging.getLogger(__name__)

CLICK_ERRORS = (click.ClickException, typer_click_exceptions.ClickException)
USAGE_ERRORS = (click.UsageError, typer_click_exceptions.UsageError)
ABORT_ERRORS = (click.exceptions.Abort, typer.Abort)


def write_json(value: Any) -> None:
    """Print ``value`` as a single compact JSON line on stdout."""
    typer.echo(json.dumps(value, ensure_ascii=False))


def write_error(error: WalletError) -> None:
    write_json(error.to_envelope())


def fail(error: WalletError) -> NoReturn:
    """Print the error envelope and exit with the error's exit code."""
    write_error(error)
    raise typer.Exit(code=error.exit_code)


def usage_error(error: Exception) -> WalletError:
    """Map a command-line parsing failure to a WalletError."""
    message = error.format_message()
    if isinstance(error, USAGE_ERRORS) and message.startswith("No such command"):
        return WalletError("unknown_command", message)
    return WalletError("cli_error", message, {"click_error": type(error).__name__})


@contextmanager
def json_errors() -> Iterator[None]:
    """Render any failure inside the block as a JSON error envelope.

    WalletError keeps its code; anything else becomes ``internal_error``.
    """
    try:
        yield
    except (typer.Exit, *CLICK_ERRORS):
        raise
    except WalletError as e:
        logger.debug(f"Command failed: {e!r}")
        fail(e)
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        fail(WalletError("internal_error", str(e) or type(e).__name__))
