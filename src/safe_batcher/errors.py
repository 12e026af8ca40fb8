"""Exceptions raised while building and proposing Safe batches."""

from __future__ import annotations


class SafeBatcherError(Exception):
    """Base class for all safe-batcher errors."""


class InvalidAddress(SafeBatcherError, ValueError):
    """An account reference is not exactly 20 bytes wide."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Malformed address: {value!r}")


class AddressAlreadyTaken(SafeBatcherError):
    """Code already exists at the address a CREATE2 deployment would produce."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(
            f"Address {address} already has code deployed; choose a different salt"
        )


class UnsupportedNetwork(SafeBatcherError, ValueError):
    """No Safe Transaction Service is known for the chain id."""

    def __init__(self, chain_id: int, supported: list[int] | None = None):
        self.chain_id = chain_id
        message = f"Unsupported chain_id: {chain_id}."
        if supported:
            message += f" Supported chains: {supported}"
        super().__init__(message)


class SignerFailure(SafeBatcherError):
    """The signer refused or failed to sign a transaction hash."""


class TransportFailure(SafeBatcherError):
    """The HTTP request to the transaction service could not be completed."""
