"""Rich console formatter for dry-run batch previews."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .encoding.hexfmt import format_hex
from .encoding.subtx import Operation, SubTransaction
from .safe.proposal import OuterTransaction


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _selector(data: bytes) -> str:
    return format_hex(data[:4]) if len(data) >= 4 else format_hex(data)


def format_batch_table(
    safe_address: str,
    chain_id: int,
    nonce: int | None,
    entries: list[SubTransaction],
    outer: OuterTransaction,
    predicted: dict[int, str] | None = None,
    console: Console | None = None,
) -> None:
    """Print the decoded batch and the outer MultiSend calldata.

    Args:
        safe_address: Safe executing the batch
        chain_id: Network chain ID
        nonce: Safe nonce, if known
        entries: Decoded sub-transactions, in execution order
        outer: The delegate-call the Safe will execute
        predicted: CREATE2 addresses keyed by entry index
        console: Console to print to (defaults to stdout)
    """
    console = console or Console()
    predicted = predicted or {}

    info_table = Table(show_header=False, box=None, padding=(0, 1))
    info_table.add_column("Key", style="dim")
    info_table.add_column("Value", style="cyan")
    info_table.add_row("Safe", safe_address)
    info_table.add_row("Chain", str(chain_id))
    info_table.add_row("Nonce", "?" if nonce is None else str(nonce))
    info_table.add_row("MultiSend", outer.to)
    info_table.add_row("Value (wei)", f"{outer.value:,}")

    info_panel = Panel(info_table, title="[bold]Safe[/]", border_style="blue")

    tx_table = Table(expand=True, show_lines=False)
    tx_table.add_column("#", justify="right", style="dim")
    tx_table.add_column("Op", style="yellow")
    tx_table.add_column("To", style="cyan", no_wrap=True)
    tx_table.add_column("Value (wei)", justify="right")
    tx_table.add_column("Selector", style="dim")
    tx_table.add_column("Data (bytes)", justify="right")
    tx_table.add_column("Deploys", style="green", no_wrap=True)

    for index, entry in enumerate(entries):
        tx_table.add_row(
            str(index),
            "CALL" if entry.operation == Operation.CALL else "DELEGATECALL",
            _truncate_address(entry.to_checksum),
            f"{entry.value:,}",
            _selector(entry.data),
            f"{len(entry.data):,}",
            predicted.get(index, ""),
        )

    tx_panel = Panel(
        tx_table,
        title=f"[bold]Batch ({len(entries)} sub-transactions)[/]",
        border_style="cyan",
    )

    calldata_panel = Panel(
        Text(outer.data.hex(), style="dim", overflow="fold"),
        title="[bold]Calldata[/]",
        border_style="dim",
    )

    outer_panel = Panel(
        Group(info_panel, "", tx_panel, "", calldata_panel),
        title="[bold white]Safe Batch Dry Run[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
