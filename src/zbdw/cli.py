"""Typer-based CLI for zbdw."""

import logging
import sys
from contextlib import nullcontext
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .amounts import looks_like_amount, parse_sats
from .config import WalletConfig, WalletSettings, resolve_api_key
from .errors import WalletError
from .ledger import PaylinkCache, PaymentLedger
from .models.ledger import PaymentRecord
from .models.onchain import dump_payout
from .models.paylink import PaylinkMetadataRecord
from .onchain import require_consent
from .output import ABORT_ERRORS, CLICK_ERRORS, json_errors, usage_error, write_error, write_json
from .paths import WalletPaths
from .reconcile import SettlementReconciler
from .routing import build_send_request
from .wallet import PaylinkClient, PayoutClient, WalletClient

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="zbdw",
    help="ZBD agent wallet CLI",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

WITHDRAW_USAGE = (
    "Use `zbdw withdraw <amount_sats>`, `zbdw withdraw <withdraw_id>`, "
    "`zbdw withdraw create <amount_sats>`, or `zbdw withdraw status <withdraw_id>`"
)


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("zbdw")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=err_console, show_path=False))


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log requests and ledger writes to stderr",
    ),
):
    """ZBD agent wallet CLI.

    Every command prints one JSON document on stdout.
    """
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _load_context() -> tuple[WalletSettings, WalletPaths]:
    settings = WalletSettings.from_env()
    return settings, WalletPaths.from_settings(settings)


def _require_api_key(settings: WalletSettings, paths: WalletPaths, flag_key: Optional[str] = None) -> str:
    config = WalletConfig.load(paths.config_file)
    api_key, source = resolve_api_key(
        flag_key=flag_key,
        env_key=settings.env_api_key,
        config_key=config.api_key if config else None,
    )
    logger.debug(f"Using API key from {source}")
    return api_key


def _progress(settings: WalletSettings, label: str):
    """Spinner on stderr for interactive terminals only."""
    if settings.show_progress and sys.stderr.isatty():
        return err_console.status(label)
    return nullcontext()


@app.command()
def init(
    key: Optional[str] = typer.Option(
        None,
        "--key",
        help="ZBD API key (default: ZBD_API_KEY env or saved config)",
    ),
):
    """Register the wallet identity and save it to the local config."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths, flag_key=key)

        wallet = WalletClient.from_settings(settings, api_key)
        lightning_address = wallet.register_identity()

        WalletConfig(api_key=api_key, lightning_address=lightning_address).save(paths.config_file)
        logger.info(f"Saved wallet config to {paths.config_file}")

        write_json({"lightningAddress": lightning_address, "status": "ok"})


@app.command()
def info():
    """Show wallet identity and balance (API key masked)."""
    with json_errors():
        settings, paths = _load_context()
        config = WalletConfig.load(paths.config_file)
        api_key = _require_api_key(settings, paths)

        balance = WalletClient.from_settings(settings, api_key).fetch_balance_sats()

        write_json(
            {
                "lightningAddress": config.lightning_address if config else None,
                "apiKey": "***",
                "balance_sats": balance,
            }
        )


@app.command()
def balance():
    """Get wallet balance in sats."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        write_json({"balance_sats": WalletClient.from_settings(settings, api_key).fetch_balance_sats()})


@app.command()
def receive(
    amount_sats: Optional[str] = typer.Argument(None, help="Amount to receive in sats"),
    description: Optional[str] = typer.Argument(None, help="Optional invoice description"),
    static: bool = typer.Option(
        False,
        "--static",
        help="Create a reusable static charge instead of a one-off invoice",
    ),
):
    """Create an invoice or a static charge."""
    with json_errors():
        settings, paths = _load_context()

        if static:
            fixed_amount = parse_sats(amount_sats) if amount_sats and amount_sats.strip() else None
            api_key = _require_api_key(settings, paths)
            charge = WalletClient.from_settings(settings, api_key).create_static_charge(
                amount_sats=fixed_amount,
                description=description,
            )

            PaymentLedger(paths.payments_file).append(
                PaymentRecord(
                    id=charge.charge_id,
                    kind="receive",
                    amount_sats=fixed_amount or 0,
                    status=charge.status,
                    timestamp=charge.timestamp,
                )
            )

            output = {"charge_id": charge.charge_id}
            if charge.lightning_address:
                output["lightning_address"] = charge.lightning_address
            if charge.lnurl:
                output["lnurl"] = charge.lnurl
            write_json(output)
            return

        amount = parse_sats(amount_sats)
        api_key = _require_api_key(settings, paths)
        invoice = WalletClient.from_settings(settings, api_key).create_invoice(amount, description)

        PaymentLedger(paths.payments_file).append(
            PaymentRecord(
                id=invoice.id,
                kind="receive",
                amount_sats=invoice.amount_sats,
                status=invoice.status,
                timestamp=invoice.timestamp,
            )
        )

        write_json(
            {
                "invoice": invoice.invoice,
                "payment_hash": invoice.payment_hash,
                "expires_at": invoice.expires_at,
            }
        )


@app.command()
def send(
    destination: str = typer.Argument(..., help="Bolt11 invoice, lightning address, @gamertag or LNURL"),
    amount_sats: str = typer.Argument(..., help="Amount to send in sats"),
):
    """Send a payment; the destination type is detected automatically."""
    with json_errors():
        amount = parse_sats(amount_sats)
        request = build_send_request(destination, amount)

        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)
        wallet = WalletClient.from_settings(settings, api_key)

        with _progress(settings, "Sending payment"):
            result = wallet.send_payment(request)

        PaymentLedger(paths.payments_file).append(
            PaymentRecord(
                id=result.payment_id,
                kind="send",
                amount_sats=result.amount_sats,
                fee_sats=result.fee_sats,
                status=result.status,
                timestamp=result.timestamp,
                preimage=result.preimage,
            )
        )

        output = {
            "payment_id": result.payment_id,
            "fee_sats": result.fee_sats,
            "status": result.status,
        }
        if result.preimage:
            output["preimage"] = result.preimage
        write_json(output)


@app.command()
def payments(
    table: bool = typer.Option(False, "--table", help="Render a table instead of JSON"),
):
    """List local payment history."""
    with json_errors():
        _, paths = _load_context()
        records = PaymentLedger(paths.payments_file).read_all()

        if not table:
            write_json([record.to_json_dict() for record in records])
            return

        if not records:
            console.print("[dim]No payments recorded yet[/dim]")
            return

        rich_table = Table(title=f"{len(records)} Payment(s)")
        rich_table.add_column("Timestamp", style="dim")
        rich_table.add_column("Type")
        rich_table.add_column("Amount (sats)", justify="right")
        rich_table.add_column("Fee", justify="right")
        rich_table.add_column("Status")
        rich_table.add_column("Source", style="dim")
        rich_table.add_column("ID", style="cyan")

        for record in records:
            rich_table.add_row(
                record.timestamp,
                record.kind,
                str(record.amount_sats),
                "" if record.fee_sats is None else str(record.fee_sats),
                record.status,
                record.source or "lightning",
                record.id,
            )

        console.print(rich_table)


@app.command()
def payment(
    payment_id: str = typer.Argument(..., metavar="ID", help="Payment identifier"),
):
    """Get payment detail by id (local history first, then the ZBD API)."""
    with json_errors():
        settings, paths = _load_context()
        ledger = PaymentLedger(paths.payments_file)

        local = ledger.find_by_id(payment_id)
        if local is not None:
            write_json(local.to_json_dict())
            return

        api_key = _require_api_key(settings, paths)
        reconciler = SettlementReconciler(ledger, WalletClient.from_settings(settings, api_key))
        write_json(reconciler.lookup_payment(payment_id).to_json_dict())


paylink_app = typer.Typer(help="Manage hosted paylinks")
app.add_typer(paylink_app, name="paylink")


@paylink_app.command("create")
def paylink_create(
    amount_sats: str = typer.Argument(..., help="Amount to collect in sats"),
):
    """Create a paylink."""
    with json_errors():
        amount = parse_sats(amount_sats)
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        paylink = PaylinkClient.from_settings(settings, api_key).create(amount)

        try:
            PaylinkCache(paths.paylinks_file).append_if_absent(PaylinkMetadataRecord.from_result(paylink))
        except OSError as e:
            logger.warning(f"Could not cache paylink {paylink.id}: {e}")

        write_json(paylink.summary(include_timestamps=False))


@paylink_app.command("get")
def paylink_get(
    paylink_id: str = typer.Argument(..., metavar="ID", help="Paylink identifier"),
):
    """Get paylink details and record its settlement locally."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        paylink = PaylinkClient.from_settings(settings, api_key).get(paylink_id)

        reconciler = SettlementReconciler(
            PaymentLedger(paths.payments_file),
            WalletClient.from_settings(settings, api_key),
        )
        reconciler.sync_paylink_settlement(paylink)

        write_json(paylink.summary())


@paylink_app.command("list")
def paylink_list():
    """List paylinks."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        paylinks = PaylinkClient.from_settings(settings, api_key).list()
        write_json({"paylinks": [paylink.summary() for paylink in paylinks]})


@paylink_app.command("cancel")
def paylink_cancel(
    paylink_id: str = typer.Argument(..., metavar="ID", help="Paylink identifier"),
):
    """Cancel a paylink."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        paylink = PaylinkClient.from_settings(settings, api_key).cancel(paylink_id)
        summary = paylink.summary(include_timestamps=False)
        summary.pop("amount_sats")
        write_json(summary)


@app.command()
def withdraw(
    args: Optional[List[str]] = typer.Argument(
        None,
        metavar="[AMOUNT_OR_ID] | create AMOUNT | status ID",
        help="Amount in sats creates a request; anything else is looked up as a withdraw id",
    ),
):
    """Create or check LNURL-withdraw requests."""
    with json_errors():
        words = [arg.strip() for arg in args or [] if arg.strip()]

        if len(words) == 2 and words[0] in ("create", "status"):
            action, target = words
        elif len(words) == 1 and words[0] not in ("create", "status"):
            target = words[0]
            action = "create" if looks_like_amount(target) else "status"
        else:
            raise WalletError("invalid_withdraw_usage", WITHDRAW_USAGE)

        amount = parse_sats(target) if action == "create" else None

        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)
        wallet = WalletClient.from_settings(settings, api_key)

        if amount is not None:
            created = wallet.create_withdraw(amount)
            write_json({"withdraw_id": created.withdraw_id, "lnurl": created.lnurl})
            return

        write_json(wallet.fetch_withdraw_status(target).model_dump())


onchain_app = typer.Typer(help="Manage onchain payouts")
app.add_typer(onchain_app, name="onchain")


@onchain_app.command("quote")
def onchain_quote(
    amount_sats: str = typer.Argument(..., help="Amount to send in sats"),
    destination: str = typer.Argument(..., help="Bitcoin address"),
):
    """Quote an onchain payout."""
    with json_errors():
        amount = parse_sats(amount_sats)
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        write_json(PayoutClient.from_settings(settings, api_key).quote(amount, destination).model_dump())


@onchain_app.command("send")
def onchain_send(
    amount_sats: str = typer.Argument(..., help="Amount to send in sats"),
    destination: str = typer.Argument(..., help="Bitcoin address"),
    payout_id: Optional[str] = typer.Option(
        None,
        "--payout-id",
        help="Caller-chosen payout id (makes retries of this command idempotent)",
    ),
    accept_terms: bool = typer.Option(
        False,
        "--accept-terms",
        help="Accept the onchain payout terms (required)",
    ),
):
    """Create an onchain payout."""
    with json_errors():
        require_consent(accept_terms)
        amount = parse_sats(amount_sats)

        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        created = PayoutClient.from_settings(settings, api_key).create(
            amount,
            destination,
            accept_terms=True,
            payout_id=payout_id,
        )
        SettlementReconciler(PaymentLedger(paths.payments_file)).record_payout(created)

        write_json(dump_payout(created))


@onchain_app.command("status")
def onchain_status(
    payout_id: str = typer.Argument(..., help="Onchain payout identifier"),
):
    """Get onchain payout status."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        status = PayoutClient.from_settings(settings, api_key).status(payout_id)
        SettlementReconciler(PaymentLedger(paths.payments_file)).sync_payout_status(status)

        write_json(dump_payout(status))


@onchain_app.command("retry-claim")
def onchain_retry_claim(
    payout_id: str = typer.Argument(..., help="Onchain payout identifier"),
):
    """Retry the claim workflow for an onchain payout."""
    with json_errors():
        settings, paths = _load_context()
        api_key = _require_api_key(settings, paths)

        write_json(dump_payout(PayoutClient.from_settings(settings, api_key).retry_claim(payout_id)))


@app.command()
def version():
    """Show zbdw version."""
    from . import __version__
    write_json({"name": "zbdw", "version": __version__})


def main():
    """Entry point for the CLI.

    Runs outside click's standalone mode so that parser errors (unknown
    command, missing argument) are reported as JSON like every other failure.
    """
    command = typer.main.get_command(app)
    try:
        exit_code = command.main(prog_name="zbdw", standalone_mode=False)
    except CLICK_ERRORS as e:
        write_error(usage_error(e))
        sys.exit(1)
    except ABORT_ERRORS:
        write_error(WalletError("cli_error", "Aborted"))
        sys.exit(1)

    sys.exit(exit_code if isinstance(exit_code, int) else 0)


if __name__ == "__main__":
    main()
