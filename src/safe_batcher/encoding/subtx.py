"""Packed MultiSend sub-transaction encoding.

Layout of one entry (all integers big-endian)::

    operation (1) || to (20) || value (32) || data length (32) || data
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache

from eth_typing import ChecksumAddress
from web3 import Web3
from web3.contract import Contract

from ..abi import load_create_call_abi
from ..constants import CREATE_CALL_ADDRESS, MAX_UINT256
from .create2 import CodeReader, check_salt, ensure_address_free, predict_create2_address
from .hexfmt import AddressLike, checksum_hex, format_hex, normalize_address

logger = logging.getLogger(__name__)

OPERATION_SIZE = 1
ADDRESS_SIZE = 20
WORD_SIZE = 32
HEADER_SIZE = OPERATION_SIZE + ADDRESS_SIZE + WORD_SIZE + WORD_SIZE


class Operation(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


def check_uint256(value: int, name: str = "value") -> int:
    """Reject amounts that do not fit an unsigned 256-bit word."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"{name} out of uint256 range: {value}")
    return value


@dataclass(frozen=True)
class SubTransaction:
    """One entry of a MultiSend batch."""

    operation: Operation
    to: bytes
    value: int
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", Operation(self.operation))
        object.__setattr__(self, "to", normalize_address(self.to))
        object.__setattr__(self, "data", bytes(self.data))
        check_uint256(self.value)

    @property
    def to_checksum(self) -> str:
        return checksum_hex(self.to)

    def encode(self) -> bytes:
        """Pack this entry into its fixed-layout binary form."""
        return (
            int(self.operation).to_bytes(OPERATION_SIZE, "big")
            + self.to
            + self.value.to_bytes(WORD_SIZE, "big")
            + len(self.data).to_bytes(WORD_SIZE, "big")
            + self.data
        )


def decode_sub_transactions(batch: bytes) -> list[SubTransaction]:
    """Split a packed batch back into its entries.

    Raises:
        ValueError: If the batch is truncated or carries an unknown operation.
    """
    batch = bytes(batch)
    entries: list[SubTransaction] = []
    offset = 0
    while offset < len(batch):
        if offset + HEADER_SIZE > len(batch):
            raise ValueError(f"Truncated sub-transaction header at offset {offset}")
        operation = batch[offset]
        offset += OPERATION_SIZE
        to = batch[offset : offset + ADDRESS_SIZE]
        offset += ADDRESS_SIZE
        value = int.from_bytes(batch[offset : offset + WORD_SIZE], "big")
        offset += WORD_SIZE
        length = int.from_bytes(batch[offset : offset + WORD_SIZE], "big")
        offset += WORD_SIZE
        if offset + length > len(batch):
            raise ValueError(
                f"Sub-transaction data of {length} bytes overruns batch at offset {offset}"
            )
        data = batch[offset : offset + length]
        offset += length
        entries.append(SubTransaction(Operation(operation), to, value, data))
    return entries


def encode_call(target: AddressLike, value: int, payload: bytes) -> bytes:
    """Pack a plain CALL sub-transaction.

    Raises:
        InvalidAddress: If ``target`` is not a 20-byte address.
    """
    sub_tx = SubTransaction(Operation.CALL, normalize_address(target), value, payload)
    logger.debug(
        "Encoded call to %s (value=%d, %d bytes of data)",
        sub_tx.to_checksum,
        value,
        len(sub_tx.data),
    )
    return sub_tx.encode()


@lru_cache(maxsize=None)
def _create_call_contract(address: str) -> Contract:
    w3 = Web3()
    return w3.eth.contract(
        address=w3.to_checksum_address(address), abi=load_create_call_abi()
    )


def encode_perform_create2(
    deployment_data: bytes, salt: bytes, create_call_address: str = CREATE_CALL_ADDRESS
) -> bytes:
    """Encode ``CreateCall.performCreate2(0, deployment_data, salt)`` calldata."""
    contract = _create_call_contract(create_call_address)
    calldata_hex = contract.encode_abi(
        abi_element_identifier="performCreate2",
        args=[0, bytes(deployment_data), check_salt(salt)],
    )
    return bytes.fromhex(calldata_hex.removeprefix("0x"))


def encode_create2(
    creation_code: bytes,
    constructor_args: bytes,
    salt: bytes,
    deployer: AddressLike,
    code_reader: CodeReader,
    create_call_address: str = CREATE_CALL_ADDRESS,
) -> tuple[bytes, ChecksumAddress]:
    """Pack a CREATE2 deployment as a delegate-call into CreateCall.

    Args:
        creation_code: Contract creation bytecode
        constructor_args: ABI-encoded constructor arguments appended to the code
        salt: 32-byte CREATE2 salt
        deployer: Account that will execute CREATE2 (the Safe, since CreateCall
            runs by delegate-call)
        code_reader: Used to check the predicted address is still empty
        create_call_address: CreateCall deployment to delegate into

    Returns:
        Tuple of (packed_sub_transaction, predicted_address)

    Raises:
        AddressAlreadyTaken: If code already exists at the predicted address.
    """
    deployment_data = bytes(creation_code) + bytes(constructor_args)
    predicted = predict_create2_address(deployer, salt, deployment_data)
    ensure_address_free(code_reader, predicted)

    sub_tx = SubTransaction(
        Operation.DELEGATE_CALL,
        normalize_address(create_call_address),
        0,
        encode_perform_create2(deployment_data, salt, create_call_address),
    )
    logger.info(
        "CREATE2 deployment of %d bytes with salt %s will land at %s",
        len(deployment_data),
        format_hex(salt),
        predicted,
    )
    return sub_tx.encode(), predicted
