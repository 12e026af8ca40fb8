"""Hex and checksum-address formatting.

Every hex string the proposal body carries is produced here so that the bytes
the transaction hash was computed over and the strings sent to the service are
always rendered the same way.
"""

from __future__ import annotations

from typing import Union

from eth_utils import is_hex_address, keccak, to_canonical_address

from ..errors import InvalidAddress

AddressLike = Union[str, bytes]

HEX_ALPHABET = "0123456789abcdef"

ADDRESS_LENGTH = 20


def format_hex(data: bytes) -> str:
    """Render bytes as a ``0x``-prefixed lowercase hex string.

    The output always has length ``2 + 2 * len(data)``; empty input yields
    ``"0x"``.
    """
    chars = ["0x"]
    for byte in bytes(data):
        chars.append(HEX_ALPHABET[byte >> 4])
        chars.append(HEX_ALPHABET[byte & 0x0F])
    return "".join(chars)


def normalize_address(address: AddressLike) -> bytes:
    """Convert an address given as hex text or raw bytes to its 20 raw bytes.

    Letter case is ignored; a mixed-case string is not validated against its
    checksum.

    Raises:
        InvalidAddress: If the value is not exactly 20 bytes / 40 hex digits.
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_LENGTH:
            raise InvalidAddress(address)
        return bytes(address)
    if isinstance(address, str) and is_hex_address(address):
        return bytes(to_canonical_address(address))
    raise InvalidAddress(address)


def format_checksum_address(address: AddressLike) -> str:
    """Return the 40 mixed-case hex digits of an address (EIP-55), unprefixed.

    A letter digit is upper-cased when the nibble at the same index of
    ``keccak(lowercase_hex)`` is greater than 7; numeric digits never change.
    """
    lower = format_hex(normalize_address(address))[2:]
    digest = keccak(text=lower)

    out = []
    for index, char in enumerate(lower):
        byte = digest[index // 2]
        # even index -> high nibble, odd index -> low nibble
        nibble = byte >> 4 if index % 2 == 0 else byte & 0x0F
        if char in "abcdef" and nibble > 7:
            out.append(char.upper())
        else:
            out.append(char)
    return "".join(out)


def checksum_hex(address: AddressLike) -> str:
    """Return the ``0x``-prefixed checksum form of an address."""
    return "0x" + format_checksum_address(address)
