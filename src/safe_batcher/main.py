"""CLI entrypoint for safe-batcher."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from eth_account import Account

from .batchfile import BatchFile, CallEntry, load_batch_file, parse_hex_bytes, parse_salt
from .constants import ZERO_ADDRESS
from .encoding.batch import EMPTY_BATCH, append
from .encoding.create2 import predict_create2_address
from .encoding.subtx import decode_sub_transactions
from .errors import SafeBatcherError
from .formatter import format_batch_table
from .logger import setup_logging
from .safe.client import SafeBatchClient
from .safe.proposal import build_outer_transaction
from .settings import BatcherSettings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Batch CREATE2 deployments and calls into one Safe transaction proposal.",
)

logger = logging.getLogger("safe_batcher")


def compose_batch(
    client: SafeBatchClient, batch_file: BatchFile
) -> tuple[bytes, dict[int, str]]:
    """Encode every entry of ``batch_file`` in order.

    Returns:
        Tuple of (batch, predicted CREATE2 addresses keyed by entry index)
    """
    batch = EMPTY_BATCH
    predicted: dict[int, str] = {}
    for index, entry in enumerate(batch_file.tx):
        if isinstance(entry, CallEntry):
            sub_tx = client.call_tx(entry.to, entry.value, entry.data)
        else:
            sub_tx, address = client.create_tx(entry.bytecode, entry.args, entry.salt)
            predicted[index] = address
        batch = append(batch, sub_tx)
    return batch, predicted


@app.command()
def propose(
    batch_path: Annotated[
        Path, typer.Argument(help="TOML file describing the batch.", exists=True)
    ],
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [safe_batcher] table).",
        ),
    ] = None,
    nonce: Annotated[
        int | None,
        typer.Option("--nonce", help="Safe nonce; read from chain when omitted."),
    ] = None,
    value: Annotated[
        int | None,
        typer.Option("--value", help="Wei attached to the outer delegate-call."),
    ] = None,
    safe_address: Annotated[
        str | None, typer.Option("--safe", help="Safe address.")
    ] = None,
    rpc_url: Annotated[
        str | None, typer.Option("--rpc-url", help="RPC endpoint.")
    ] = None,
    dry_run: Annotated[
        bool | None,
        typer.Option("--dry-run/--no-dry-run", help="Preview without proposing."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Encode a batch and propose it to the Safe Transaction Service."""
    if config_path:
        os.environ["SAFE_BATCHER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, bool | str] = {}
    if safe_address is not None:
        init_kwargs["safe_address"] = safe_address
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if dry_run is not None:
        init_kwargs["dry_run"] = dry_run
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = BatcherSettings(**init_kwargs)
    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if not settings.rpc_url:
        raise typer.BadParameter(
            "rpc_url must be configured", param_hint=["--rpc-url", "SAFE_BATCHER_RPC_URL"]
        )
    if not settings.safe_address:
        raise typer.BadParameter(
            "safe_address must be configured", param_hint=["--safe", "SAFE_BATCHER_SAFE_ADDRESS"]
        )
    if not settings.dry_run and not settings.private_key:
        raise typer.BadParameter(
            "private_key is required when running with --no-dry-run.",
            param_hint=["SAFE_BATCHER_PRIVATE_KEY"],
        )

    batch_file = load_batch_file(batch_path)
    attached_value = value if value is not None else batch_file.value

    try:
        client = SafeBatchClient.from_settings(settings)
        batch, predicted = compose_batch(client, batch_file)
        logger.info(
            "Composed %d sub-transaction(s), %d bytes", len(batch_file.tx), len(batch)
        )

        if settings.dry_run:
            outer = build_outer_transaction(
                batch, ZERO_ADDRESS, attached_value, client.multi_send_address
            )
            format_batch_table(
                client.safe_address,
                client.chain_id,
                nonce,
                decode_sub_transactions(batch),
                outer,
                predicted,
            )
            return

        if nonce is None:
            nonce = client.read_nonce()
        key_id = Account.from_key(settings.private_key_required.get_secret_value()).address
        result = client.send_txs(batch, nonce, key_id, value=attached_value)
    except SafeBatcherError as e:
        logger.error("❌ Error: %s", e)
        raise typer.Exit(code=1) from e

    if not result.ok:
        logger.error(
            "Transaction Service rejected the proposal (HTTP %d): %s",
            result.status_code,
            result.response_body.decode(errors="replace"),
        )
        raise typer.Exit(code=1)

    logger.info("Transaction proposed to Safe")
    logger.info("Approve here: %s", client.get_safe_ui_url(result.safe_tx_hash))


@app.command()
def predict(
    bytecode: Annotated[str, typer.Argument(help="Creation bytecode (hex).")],
    salt: Annotated[
        str, typer.Argument(help="32-byte hex salt, or text to hash into one.")
    ],
    deployer: Annotated[
        str, typer.Option("--deployer", help="Account executing CREATE2 (the Safe).")
    ],
    args: Annotated[
        str, typer.Option("--args", help="ABI-encoded constructor arguments (hex).")
    ] = "0x",
):
    """Print the CREATE2 address for a deployment, without checking for code."""
    try:
        init_code = parse_hex_bytes(bytecode) + parse_hex_bytes(args)
        address = predict_create2_address(deployer, parse_salt(salt), init_code)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(address)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
