"""Safe transaction proposal and Transaction Service integration."""

from .client import SafeBatchClient, safe_ui_url
from .collaborators import (
    LocalAccountSigner,
    RequestsTransport,
    SafeContractHasher,
    SafeTxHasher,
    Signer,
    TransactionHasher,
    Transport,
)
from .constants import SAFE_SERVICE_URLS, get_safe_service_url
from .proposal import (
    OuterTransaction,
    ProposalResult,
    ProposalStage,
    build_outer_transaction,
    build_request_body,
    pack_signature,
    proposal_url,
    send_txs,
)

__all__ = [
    "SafeBatchClient",
    "safe_ui_url",
    "LocalAccountSigner",
    "RequestsTransport",
    "SafeContractHasher",
    "SafeTxHasher",
    "Signer",
    "TransactionHasher",
    "Transport",
    "SAFE_SERVICE_URLS",
    "get_safe_service_url",
    "OuterTransaction",
    "ProposalResult",
    "ProposalStage",
    "build_outer_transaction",
    "build_request_body",
    "pack_signature",
    "proposal_url",
    "send_txs",
]
