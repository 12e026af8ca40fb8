"""Safe Transaction Service endpoints by chain."""

from __future__ import annotations

from ..errors import UnsupportedNetwork

# Safe Transaction Service base URLs by chain ID
SAFE_SERVICE_URLS = {
    1: "https://safe-transaction-mainnet.safe.global/api/v1/safes/",
    56: "https://safe-transaction-bsc.safe.global/api/v1/safes/",
    137: "https://safe-transaction-polygon.safe.global/api/v1/safes/",
    8453: "https://safe-transaction-base.safe.global/api/v1/safes/",
    42161: "https://safe-transaction-arbitrum.safe.global/api/v1/safes/",
    43114: "https://safe-transaction-avalanche.safe.global/api/v1/safes/",
    84532: "https://safe-transaction-base-sepolia.safe.global/api/v1/safes/",
    11155111: "https://safe-transaction-sepolia.safe.global/api/v1/safes/",
}

# Network names for UI URL generation
NETWORK_PREFIXES = {
    1: "eth",
    56: "bnb",
    137: "matic",
    8453: "base",
    42161: "arb1",
    43114: "avax",
    84532: "basesep",
    11155111: "sep",
}


def get_safe_service_url(chain_id: int) -> str:
    """Get Safe Transaction Service URL for chain.

    Args:
        chain_id: Network chain ID (e.g., 1 for mainnet, 11155111 for sepolia)

    Returns:
        Base URL of the service's ``safes`` collection, ending in ``/``

    Raises:
        UnsupportedNetwork: If chain_id is not supported
    """
    if chain_id not in SAFE_SERVICE_URLS:
        raise UnsupportedNetwork(chain_id, list(SAFE_SERVICE_URLS.keys()))
    return SAFE_SERVICE_URLS[chain_id]
