"""CREATE2 address prediction."""

from __future__ import annotations

import logging
from typing import Protocol

from eth_typing import ChecksumAddress
from eth_utils import keccak

from ..errors import AddressAlreadyTaken
from .hexfmt import AddressLike, checksum_hex, normalize_address

logger = logging.getLogger(__name__)

CREATE2_PREFIX = b"\xff"
SALT_LENGTH = 32


class CodeReader(Protocol):
    """Anything that can return the runtime code at an address (e.g. ``w3.eth``)."""

    def get_code(self, address: ChecksumAddress) -> bytes: ...


def check_salt(salt: bytes) -> bytes:
    salt = bytes(salt)
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"salt must be {SALT_LENGTH} bytes, got {len(salt)}")
    return salt


def predict_create2_address(
    deployer: AddressLike, salt: bytes, init_code: bytes
) -> ChecksumAddress:
    """Compute the address a CREATE2 deployment will produce.

    ``keccak(0xff || deployer || salt || keccak(init_code))[12:]``

    Args:
        deployer: Account executing the CREATE2 opcode
        salt: 32-byte salt
        init_code: Creation bytecode with constructor arguments appended

    Returns:
        Predicted contract address in checksum form
    """
    digest = keccak(
        CREATE2_PREFIX
        + normalize_address(deployer)
        + check_salt(salt)
        + keccak(bytes(init_code))
    )
    return ChecksumAddress(checksum_hex(digest[12:]))


def ensure_address_free(code_reader: CodeReader, address: ChecksumAddress) -> None:
    """Raise if code is already deployed at ``address``.

    The check and the later deployment are not atomic; this only guarantees no
    collision is known at call time.

    Raises:
        AddressAlreadyTaken: If the address already holds code.
    """
    code = code_reader.get_code(address)
    if len(code) > 0:
        logger.error("Code already deployed at %s", address)
        raise AddressAlreadyTaken(address)
    logger.debug("No code at %s, deployment can proceed", address)
