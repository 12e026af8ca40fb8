"""Entry points for composing and proposing a Safe batch."""

from __future__ import annotations

import logging

from eth_typing import URI, ChecksumAddress
from web3 import Web3

from ..abi import load_safe_abi
from ..constants import CREATE_CALL_ADDRESS, MULTI_SEND_ADDRESS
from ..encoding.create2 import CodeReader
from ..encoding.hexfmt import AddressLike, checksum_hex
from ..encoding.subtx import encode_call, encode_create2
from ..settings import BatcherSettings, HashSource
from .collaborators import (
    LocalAccountSigner,
    RequestsTransport,
    SafeContractHasher,
    SafeTxHasher,
    Signer,
    TransactionHasher,
    Transport,
)
from .constants import NETWORK_PREFIXES
from .proposal import ProposalResult, send_txs

logger = logging.getLogger(__name__)


class SafeBatchClient:
    """Builds batches for one Safe and proposes them to the Transaction Service."""

    def __init__(
        self,
        chain_id: int,
        safe_address: str,
        hasher: TransactionHasher,
        signer: Signer,
        transport: Transport,
        code_reader: CodeReader | None = None,
        w3: Web3 | None = None,
        multi_send_address: str = MULTI_SEND_ADDRESS,
        create_call_address: str = CREATE_CALL_ADDRESS,
        origin: str | None = None,
    ):
        """Initialize the client.

        Args:
            chain_id: Network chain ID
            safe_address: Safe contract address
            hasher: Source of Safe transaction hashes
            signer: Signer holding at least one owner key
            transport: HTTP transport for the Transaction Service
            code_reader: Used for CREATE2 collision checks (defaults to ``w3.eth``)
            w3: Web3 instance for on-chain reads
            multi_send_address: MultiSend deployment for batches
            create_call_address: CreateCall deployment for CREATE2 sub-transactions
            origin: Overrides the proposal ``origin`` field
        """
        self.chain_id = chain_id
        self.safe_address = Web3.to_checksum_address(safe_address)
        self.hasher = hasher
        self.signer = signer
        self.transport = transport
        self.w3 = w3
        if code_reader is None and w3 is not None:
            code_reader = w3.eth
        self.code_reader = code_reader
        self.multi_send_address = multi_send_address
        self.create_call_address = create_call_address
        self.origin = origin

    @classmethod
    def from_settings(cls, settings: BatcherSettings) -> "SafeBatchClient":
        """Wire web3, the configured hasher, a local-key signer and requests."""
        w3 = Web3(
            Web3.HTTPProvider(
                URI(settings.rpc_url_required),
                request_kwargs={"timeout": settings.request_timeout},
            )
        )
        chain_id = settings.chain_id if settings.chain_id is not None else w3.eth.chain_id
        safe_address = settings.safe_address_required

        hasher: TransactionHasher
        if settings.hash_source == HashSource.LOCAL:
            hasher = SafeTxHasher(chain_id, safe_address, settings.safe_version)
        else:
            hasher = SafeContractHasher(w3, safe_address)

        # without a key the client can still compose batches (dry runs)
        signer = (
            LocalAccountSigner.from_keys(settings.private_key.get_secret_value())
            if settings.private_key
            else LocalAccountSigner()
        )

        return cls(
            chain_id=chain_id,
            safe_address=safe_address,
            hasher=hasher,
            signer=signer,
            transport=RequestsTransport(timeout=settings.request_timeout),
            w3=w3,
            multi_send_address=settings.multi_send_address,
            create_call_address=settings.create_call_address,
            origin=settings.origin,
        )

    def create_tx(
        self,
        bytecode: bytes,
        args: bytes,
        salt: bytes,
        deployer: AddressLike | None = None,
    ) -> tuple[bytes, ChecksumAddress]:
        """Pack a CREATE2 deployment; ``deployer`` defaults to this Safe.

        Raises:
            AddressAlreadyTaken: If code already exists at the predicted address.
            ValueError: If no code reader is configured.
        """
        if self.code_reader is None:
            raise ValueError("A code reader (or w3) is required for create_tx")
        return encode_create2(
            bytecode,
            args,
            salt,
            deployer if deployer is not None else self.safe_address,
            self.code_reader,
            self.create_call_address,
        )

    def call_tx(self, target: AddressLike, value: int, payload: bytes) -> bytes:
        """Pack a plain call."""
        return encode_call(target, value, payload)

    def send_txs(
        self, batch: bytes, nonce: int, key_id: str, value: int = 0
    ) -> ProposalResult:
        """Propose ``batch`` to this Safe, signed with ``key_id``."""
        return send_txs(
            batch,
            nonce,
            key_id,
            self.safe_address,
            chain_id=self.chain_id,
            hasher=self.hasher,
            signer=self.signer,
            transport=self.transport,
            value=value,
            multi_send_address=self.multi_send_address,
            origin=self.origin,
        )

    def read_nonce(self) -> int:
        """Read the Safe's current nonce from chain.

        Raises:
            ValueError: If no Web3 instance is configured.
        """
        if self.w3 is None:
            raise ValueError("w3 is required to read the Safe nonce")
        contract = self.w3.eth.contract(address=self.safe_address, abi=load_safe_abi())
        nonce = contract.functions.nonce().call()
        logger.debug("Safe %s nonce is %d", self.safe_address, nonce)
        return nonce

    def get_safe_ui_url(self, safe_tx_hash: str) -> str:
        return safe_ui_url(self.chain_id, self.safe_address, safe_tx_hash)


def safe_ui_url(chain_id: int, safe_address: AddressLike, safe_tx_hash: str) -> str:
    """Generate Safe UI URL for transaction.

    Args:
        chain_id: Network chain ID
        safe_address: Safe contract address
        safe_tx_hash: Safe transaction hash

    Returns:
        Safe web app URL for the transaction
    """
    network_prefix = NETWORK_PREFIXES.get(chain_id, "eth")
    return (
        f"https://app.safe.global/transactions/queue"
        f"?safe={network_prefix}:{checksum_hex(safe_address)}"
        f"#{safe_tx_hash}"
    )
