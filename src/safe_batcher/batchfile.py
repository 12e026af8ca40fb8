"""TOML batch descriptions.

Example::

    [[tx]]
    kind = "create2"
    bytecode = "0x6080..."
    args = "0x"
    salt = "my-token-v1"

    [[tx]]
    kind = "call"
    to = "0x..."
    value = 0
    data = "0x..."
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated, Literal, Union

from eth_utils import is_hex, keccak
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .encoding.hexfmt import checksum_hex


def parse_hex_bytes(value: object) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        text = value.strip()
        if text in ("", "0x"):
            return b""
        if is_hex(text):
            digits = text.removeprefix("0x").removeprefix("0X")
            if len(digits) % 2 == 0:
                return bytes.fromhex(digits)
    raise ValueError(f"expected an even-length hex string, got {value!r}")


def parse_salt(value: str | bytes) -> bytes:
    """A 32-byte hex salt is used as-is; anything else is hashed with keccak."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value) if len(value) == 32 else keccak(bytes(value))
    text = value.strip()
    if text.startswith(("0x", "0X")) and len(text) == 66 and is_hex(text):
        return bytes.fromhex(text[2:])
    return keccak(text=value)


class CallEntry(BaseModel):
    kind: Literal["call"]
    to: str
    value: int = Field(default=0, ge=0)
    data: bytes = b""

    model_config = ConfigDict(extra="forbid")

    @field_validator("to")
    @classmethod
    def checksum_to(cls, v: str) -> str:
        return checksum_hex(v)

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v: object) -> bytes:
        return parse_hex_bytes(v)


class Create2Entry(BaseModel):
    kind: Literal["create2"]
    bytecode: bytes
    args: bytes = b""
    salt: bytes

    model_config = ConfigDict(extra="forbid")

    @field_validator("bytecode", "args", mode="before")
    @classmethod
    def parse_code(cls, v: object) -> bytes:
        return parse_hex_bytes(v)

    @field_validator("salt", mode="before")
    @classmethod
    def parse_salt_field(cls, v: str | bytes) -> bytes:
        return parse_salt(v)


BatchEntry = Annotated[Union[CallEntry, Create2Entry], Field(discriminator="kind")]


class BatchFile(BaseModel):
    """A batch to propose, plus the native value attached to the outer call."""

    value: int = Field(default=0, ge=0)
    tx: list[BatchEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def load_batch_file(path: str | Path) -> BatchFile:
    """Parse a TOML batch description.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If an entry is malformed.
    """
    with Path(path).open("rb") as f:
        data = tomllib.load(f)
    return BatchFile.model_validate(data)
