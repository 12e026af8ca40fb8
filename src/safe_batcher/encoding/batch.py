"""Batch assembly for MultiSend.

A batch is the plain concatenation of packed sub-transactions; each entry's
length prefix makes it self-delimiting, and execution order is concatenation
order.
"""

from __future__ import annotations

from typing import Iterable

EMPTY_BATCH = b""


def append(batch: bytes, sub_tx: bytes) -> bytes:
    """Append one packed sub-transaction to a batch."""
    return bytes(batch) + bytes(sub_tx)


def assemble(sub_txs: Iterable[bytes]) -> bytes:
    """Concatenate packed sub-transactions, in order, into a single batch."""
    batch = EMPTY_BATCH
    for sub_tx in sub_txs:
        batch = append(batch, sub_tx)
    return batch
