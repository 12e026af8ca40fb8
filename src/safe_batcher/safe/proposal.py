"""Wrap a MultiSend batch into a Safe transaction and propose it.

The pipeline runs once per call, in order::

    START -> HASH_COMPUTED -> SIGNED -> REQUEST_BUILT -> SENT -> DONE | FAILED

Collaborator errors (hashing, signing, transport) propagate unchanged. Only
the chain lookup is checked up front, before any collaborator is touched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import NamedTuple, Union

from web3 import Web3
from web3.contract import Contract

from ..abi import load_multi_send_abi
from ..constants import MULTI_SEND_ADDRESS, ZERO_ADDRESS
from ..encoding.hexfmt import AddressLike, checksum_hex, format_hex
from ..encoding.subtx import Operation, check_uint256
from .collaborators import Signer, TransactionHasher, Transport
from .constants import get_safe_service_url

logger = logging.getLogger(__name__)

REQUEST_HEADERS = ["Accept: application/json", "Content-Type: application/json"]

HASH_LENGTH = 32


class ProposalStage(str, Enum):
    START = "START"
    HASH_COMPUTED = "HASH_COMPUTED"
    SIGNED = "SIGNED"
    REQUEST_BUILT = "REQUEST_BUILT"
    SENT = "SENT"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class OuterTransaction:
    """The single transaction the Safe executes."""

    to: str
    value: int
    data: bytes
    operation: Operation
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS

    def hash_fields(self) -> dict[str, Union[str, int, bytes]]:
        """Keyword arguments for ``TransactionHasher.compute_transaction_hash``."""
        return {
            "to": self.to,
            "value": self.value,
            "data": self.data,
            "operation": int(self.operation),
            "safe_tx_gas": self.safe_tx_gas,
            "base_gas": self.base_gas,
            "gas_price": self.gas_price,
            "gas_token": self.gas_token,
            "refund_receiver": self.refund_receiver,
        }


class ProposalResult(NamedTuple):
    status_code: int
    response_body: bytes
    request_body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def safe_tx_hash(self) -> str:
        return json.loads(self.request_body)["contractTransactionHash"]


@lru_cache(maxsize=None)
def _multi_send_contract(address: str) -> Contract:
    w3 = Web3()
    return w3.eth.contract(
        address=w3.to_checksum_address(address), abi=load_multi_send_abi()
    )


def encode_multi_send(batch: bytes, multi_send_address: str = MULTI_SEND_ADDRESS) -> bytes:
    """Encode ``MultiSend.multiSend(batch)`` calldata."""
    calldata_hex = _multi_send_contract(multi_send_address).encode_abi(
        abi_element_identifier="multiSend",
        args=[bytes(batch)],
    )
    return bytes.fromhex(calldata_hex.removeprefix("0x"))


def build_outer_transaction(
    batch: bytes,
    refund_receiver: AddressLike,
    value: int = 0,
    multi_send_address: str = MULTI_SEND_ADDRESS,
) -> OuterTransaction:
    """Build the delegate-call into MultiSend that executes ``batch``."""
    return OuterTransaction(
        to=checksum_hex(multi_send_address),
        value=check_uint256(value),
        data=encode_multi_send(batch, multi_send_address),
        operation=Operation.DELEGATE_CALL,
        gas_token=ZERO_ADDRESS,
        refund_receiver=checksum_hex(refund_receiver),
    )


def _word(part: Union[int, bytes], name: str) -> bytes:
    if isinstance(part, int):
        return part.to_bytes(32, "big")
    part = bytes(part)
    if len(part) > 32:
        raise ValueError(f"signature {name} is {len(part)} bytes, expected 32")
    return part.rjust(32, b"\x00")


def pack_signature(v: int, r: Union[int, bytes], s: Union[int, bytes]) -> bytes:
    """Concatenate a signature as ``r (32) || s (32) || v (1)``."""
    return _word(r, "r") + _word(s, "s") + int(v).to_bytes(1, "big")


def proposal_url(base_url: str, safe_address: AddressLike) -> str:
    """``{base_url}{checksummed safe}/multisig-transactions/``."""
    return f"{base_url.rstrip('/')}/{checksum_hex(safe_address)}/multisig-transactions/"


def build_request_body(
    safe_address: AddressLike,
    tx: OuterTransaction,
    nonce: int,
    safe_tx_hash: bytes,
    sender: AddressLike,
    signature: bytes,
    origin: str | None = None,
) -> str:
    """Serialize the proposal JSON sent to the Safe Transaction Service.

    ``value`` and ``operation`` are JSON numbers; gas fields and the nonce are
    decimal strings; addresses are checksummed; byte fields are ``0x`` hex.
    """
    sender_hex = checksum_hex(sender)
    payload = {
        "safe": checksum_hex(safe_address),
        "to": checksum_hex(tx.to),
        "value": tx.value,
        "data": format_hex(tx.data),
        "operation": int(tx.operation),
        "gasToken": checksum_hex(tx.gas_token),
        "safeTxGas": str(tx.safe_tx_gas),
        "baseGas": str(tx.base_gas),
        "gasPrice": str(tx.gas_price),
        "refundReceiver": checksum_hex(tx.refund_receiver),
        "nonce": str(nonce),
        "contractTransactionHash": format_hex(safe_tx_hash),
        "sender": sender_hex,
        "signature": format_hex(signature),
        "origin": origin if origin is not None else sender_hex,
    }
    return json.dumps(payload)


def send_txs(
    batch: bytes,
    nonce: int,
    key_id: str,
    safe_address: AddressLike,
    *,
    chain_id: int,
    hasher: TransactionHasher,
    signer: Signer,
    transport: Transport,
    value: int = 0,
    multi_send_address: str = MULTI_SEND_ADDRESS,
    origin: str | None = None,
) -> ProposalResult:
    """Hash, sign and propose ``batch`` as one Safe transaction.

    Args:
        batch: Concatenated packed sub-transactions
        nonce: The Safe's current nonce
        key_id: Which signer key proposes (and receives any gas refund)
        safe_address: The Safe executing the batch
        chain_id: Selects the Safe Transaction Service
        hasher: Source of the Safe transaction hash
        signer: Produces ``(v, r, s)`` for the hash
        transport: Sends the HTTP request
        value: Native amount attached to the outer delegate-call
        multi_send_address: MultiSend deployment to delegate into
        origin: Overrides the ``origin`` field (defaults to the sender)

    Returns:
        ProposalResult with the HTTP status, raw response and request body

    Raises:
        UnsupportedNetwork: If no service is known for ``chain_id``. Nothing
            has been hashed, signed or sent at that point.
    """
    check_uint256(nonce, "nonce")
    stage = ProposalStage.START
    base_url = get_safe_service_url(chain_id)

    try:
        sender = checksum_hex(signer.address_of(key_id))
        tx = build_outer_transaction(batch, sender, value, multi_send_address)

        safe_tx_hash = bytes(hasher.compute_transaction_hash(**tx.hash_fields(), nonce=nonce))
        if len(safe_tx_hash) != HASH_LENGTH:
            raise ValueError(
                f"Transaction hash must be {HASH_LENGTH} bytes, got {len(safe_tx_hash)}"
            )
        stage = ProposalStage.HASH_COMPUTED
        logger.debug("%s: %s (nonce %d)", stage.value, format_hex(safe_tx_hash), nonce)

        v, r, s = signer.sign(key_id, safe_tx_hash)
        signature = pack_signature(v, r, s)
        stage = ProposalStage.SIGNED
        logger.debug("%s by %s", stage.value, sender)

        url = proposal_url(base_url, safe_address)
        body = build_request_body(
            safe_address, tx, nonce, safe_tx_hash, sender, signature, origin
        )
        stage = ProposalStage.REQUEST_BUILT
        logger.debug("%s: POST %s", stage.value, url)

        status_code, response_body = transport.post(url, list(REQUEST_HEADERS), body)
        stage = ProposalStage.SENT
    except Exception:
        logger.error("Proposal failed after stage %s", stage.value)
        raise

    result = ProposalResult(status_code, bytes(response_body), body)
    if result.ok:
        logger.info(
            "%s: proposed %s to %s (HTTP %d)",
            ProposalStage.DONE.value,
            format_hex(safe_tx_hash),
            checksum_hex(safe_address),
            status_code,
        )
    else:
        logger.warning(
            "%s: service answered HTTP %d: %s",
            ProposalStage.FAILED.value,
            status_code,
            result.response_body.decode(errors="replace"),
        )
    return result
