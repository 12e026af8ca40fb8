"""Compose CREATE2 deployments and calls into one MultiSend batch and propose it to a Safe."""

from .errors import (
    AddressAlreadyTaken,
    InvalidAddress,
    SafeBatcherError,
    SignerFailure,
    TransportFailure,
    UnsupportedNetwork,
)

__all__ = [
    "AddressAlreadyTaken",
    "InvalidAddress",
    "SafeBatcherError",
    "SignerFailure",
    "TransportFailure",
    "UnsupportedNetwork",
]
