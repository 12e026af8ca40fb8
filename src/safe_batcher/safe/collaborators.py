"""Hashing, signing and HTTP collaborators used by the proposal pipeline.

The pipeline only talks to the protocols below; the concrete classes wire them
to web3, safe-eth-py, eth-account and requests.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol, Union

import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from safe_eth.eth import EthereumClient
from safe_eth.safe.safe_tx import SafeTx
from web3 import Web3

from ..abi import load_safe_abi
from ..constants import DEFAULT_SAFE_VERSION
from ..encoding.create2 import CodeReader
from ..encoding.hexfmt import normalize_address
from ..errors import InvalidAddress, SignerFailure, TransportFailure

logger = logging.getLogger(__name__)

__all__ = [
    "CodeReader",
    "TransactionHasher",
    "Signer",
    "Transport",
    "SafeContractHasher",
    "SafeTxHasher",
    "LocalAccountSigner",
    "RequestsTransport",
]


class TransactionHasher(Protocol):
    """Computes the Safe's canonical transaction hash."""

    def compute_transaction_hash(
        self,
        to: str,
        value: int,
        data: bytes,
        operation: int,
        safe_tx_gas: int,
        base_gas: int,
        gas_price: int,
        gas_token: str,
        refund_receiver: str,
        nonce: int,
    ) -> bytes: ...


class Signer(Protocol):
    """Signs 32-byte hashes with the key selected by ``key_id``."""

    def address_of(self, key_id: str) -> ChecksumAddress: ...

    def sign(self, key_id: str, message_hash: bytes) -> tuple[int, int, int]:
        """Return ``(v, r, s)``."""
        ...


class Transport(Protocol):
    """Sends an HTTP POST and returns ``(status_code, response_body)``."""

    def post(self, url: str, headers: list[str], body: str) -> tuple[int, bytes]: ...


class SafeContractHasher:
    """Asks the Safe contract itself for ``getTransactionHash``."""

    def __init__(self, w3: Web3, safe_address: str):
        self._contract = w3.eth.contract(
            address=w3.to_checksum_address(safe_address), abi=load_safe_abi()
        )

    def compute_transaction_hash(
        self,
        to: str,
        value: int,
        data: bytes,
        operation: int,
        safe_tx_gas: int,
        base_gas: int,
        gas_price: int,
        gas_token: str,
        refund_receiver: str,
        nonce: int,
    ) -> bytes:
        tx_hash = self._contract.functions.getTransactionHash(
            Web3.to_checksum_address(to),
            value,
            data,
            operation,
            safe_tx_gas,
            base_gas,
            gas_price,
            Web3.to_checksum_address(gas_token),
            Web3.to_checksum_address(refund_receiver),
            nonce,
        ).call()
        return bytes(tx_hash)


class SafeTxHasher:
    """Offline EIP-712 hash via safe-eth-py's ``SafeTx``.

    Needs the Safe version and chain id up front so that no RPC call is made.
    """

    def __init__(
        self,
        chain_id: int,
        safe_address: str,
        safe_version: str = DEFAULT_SAFE_VERSION,
        ethereum_client: EthereumClient | None = None,
    ):
        self.chain_id = chain_id
        self.safe_address = Web3.to_checksum_address(safe_address)
        self.safe_version = safe_version
        self._ethereum_client = ethereum_client or EthereumClient()

    def compute_transaction_hash(
        self,
        to: str,
        value: int,
        data: bytes,
        operation: int,
        safe_tx_gas: int,
        base_gas: int,
        gas_price: int,
        gas_token: str,
        refund_receiver: str,
        nonce: int,
    ) -> bytes:
        safe_tx = SafeTx(
            ethereum_client=self._ethereum_client,
            safe_address=self.safe_address,
            to=Web3.to_checksum_address(to),
            value=value,
            data=data,
            operation=operation,
            safe_tx_gas=safe_tx_gas,
            base_gas=base_gas,
            gas_price=gas_price,
            gas_token=Web3.to_checksum_address(gas_token),
            refund_receiver=Web3.to_checksum_address(refund_receiver),
            safe_nonce=nonce,
            safe_version=self.safe_version,
            chain_id=self.chain_id,
        )
        return bytes(safe_tx.safe_tx_hash)


class LocalAccountSigner:
    """Signs with in-memory private keys, addressed by owner address.

    ``key_id`` is the owner address in any letter case.
    """

    def __init__(self, accounts: Iterable[LocalAccount] = ()):
        self._accounts: dict[bytes, LocalAccount] = {}
        for account in accounts:
            self.add(account)

    @classmethod
    def from_keys(cls, *private_keys: str) -> "LocalAccountSigner":
        signer = cls()
        for key in private_keys:
            signer.add(Account.from_key(key))
        return signer

    def add(self, account: LocalAccount) -> ChecksumAddress:
        self._accounts[normalize_address(account.address)] = account
        return account.address

    @property
    def key_ids(self) -> list[str]:
        return [account.address for account in self._accounts.values()]

    def _account(self, key_id: str) -> LocalAccount:
        try:
            return self._accounts[normalize_address(key_id)]
        except (KeyError, InvalidAddress) as e:
            raise SignerFailure(f"No signing key loaded for {key_id!r}") from e

    def address_of(self, key_id: str) -> ChecksumAddress:
        return self._account(key_id).address

    def sign(self, key_id: str, message_hash: bytes) -> tuple[int, int, int]:
        account = self._account(key_id)
        try:
            signed = account.unsafe_sign_hash(message_hash)
        except Exception as e:
            raise SignerFailure(
                f"Signing failed for {account.address}: {e}"
            ) from e
        return signed.v, signed.r, signed.s


class RequestsTransport:
    """POSTs with a ``requests.Session``; HTTP error statuses are returned, not raised."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 10.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    @staticmethod
    def parse_headers(headers: list[str]) -> dict[str, str]:
        parsed: dict[str, str] = {}
        for header in headers:
            name, sep, value = header.partition(":")
            if not sep:
                raise ValueError(f"Malformed header: {header!r}")
            parsed[name.strip()] = value.strip()
        return parsed

    def post(self, url: str, headers: list[str], body: Union[str, bytes]) -> tuple[int, bytes]:
        payload = body.encode() if isinstance(body, str) else body
        try:
            response = self.session.post(
                url,
                data=payload,
                headers=self.parse_headers(headers),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("POST %s failed: %s", url, e)
            raise TransportFailure(f"POST {url} failed: {e}") from e
        return response.status_code, response.content
