"""Byte-level encoding of Safe MultiSend batches."""

from .batch import EMPTY_BATCH, append, assemble
from .create2 import CodeReader, ensure_address_free, predict_create2_address
from .hexfmt import checksum_hex, format_checksum_address, format_hex, normalize_address
from .subtx import (
    Operation,
    SubTransaction,
    decode_sub_transactions,
    encode_call,
    encode_create2,
)

__all__ = [
    "EMPTY_BATCH",
    "append",
    "assemble",
    "CodeReader",
    "ensure_address_free",
    "predict_create2_address",
    "checksum_hex",
    "format_checksum_address",
    "format_hex",
    "normalize_address",
    "Operation",
    "SubTransaction",
    "decode_sub_transactions",
    "encode_call",
    "encode_create2",
]
