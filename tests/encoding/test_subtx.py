from unittest.mock import MagicMock

import pytest
from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector, keccak
from hexbytes import HexBytes

from safe_batcher.constants import CREATE_CALL_ADDRESS
from safe_batcher.encoding.hexfmt import checksum_hex
from safe_batcher.encoding.subtx import (
    Operation,
    SubTransaction,
    decode_sub_transactions,
    encode_call,
    encode_create2,
)
from safe_batcher.errors import AddressAlreadyTaken, InvalidAddress

SAFE = "0x3234567890123456789012345678901234567890"

PERFORM_CREATE2_SELECTOR = function_signature_to_4byte_selector(
    "performCreate2(uint256,bytes,bytes32)"
)


@pytest.fixture
def empty_code_reader() -> MagicMock:
    reader = MagicMock()
    reader.get_code.return_value = HexBytes(b"")
    return reader


def test_encode_call_exact_bytes():
    encoded = encode_call(
        "0x0000000000000000000000000000000000000001", 5, bytes([0xAA, 0xBB])
    )

    expected = (
        b"\x00"
        + bytes.fromhex("0000000000000000000000000000000000000001")
        + (5).to_bytes(32, "big")
        + (2).to_bytes(32, "big")
        + b"\xaa\xbb"
    )
    assert encoded == expected
    assert len(encoded) == 1 + 20 + 32 + 32 + 2


@pytest.mark.parametrize(
    "value, payload",
    [
        (0, b""),
        (1, b"\x00"),
        (10**18, bytes(range(100))),
        (2**256 - 1, b"\xff" * 33),
    ],
)
def test_encode_call_decodes_back(value: int, payload: bytes):
    target = bytes.fromhex("5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")

    [entry] = decode_sub_transactions(encode_call(target, value, payload))

    assert entry.operation == Operation.CALL
    assert entry.to == target
    assert entry.value == value
    assert entry.data == payload


def test_encode_call_rejects_wide_target():
    with pytest.raises(InvalidAddress):
        encode_call(b"\x01" * 32, 0, b"")


@pytest.mark.parametrize("value", [-1, 2**256])
def test_encode_call_rejects_out_of_range_value(value: int):
    with pytest.raises(ValueError, match="uint256"):
        encode_call(SAFE, value, b"")


def test_sub_transaction_accepts_text_address():
    sub_tx = SubTransaction(Operation.DELEGATE_CALL, SAFE, 0, b"")
    assert sub_tx.to == bytes.fromhex(SAFE[2:])
    assert sub_tx.to_checksum == SAFE
    assert sub_tx.encode()[0] == 1


def test_decode_rejects_truncated_batch():
    encoded = encode_call(SAFE, 0, b"\x01\x02\x03")
    with pytest.raises(ValueError, match="overruns"):
        decode_sub_transactions(encoded[:-1])
    with pytest.raises(ValueError, match="header"):
        decode_sub_transactions(encoded[:40])


def test_encode_create2_layout(empty_code_reader: MagicMock):
    bytecode = bytes.fromhex("6080604052348015600f57600080fd5b50")
    args = (42).to_bytes(32, "big")
    salt = keccak(text="seed")

    encoded, predicted = encode_create2(bytecode, args, salt, SAFE, empty_code_reader)

    [entry] = decode_sub_transactions(encoded)
    assert encoded[0] == 1
    assert entry.operation == Operation.DELEGATE_CALL
    assert entry.to_checksum == checksum_hex(CREATE_CALL_ADDRESS)
    assert entry.value == 0
    assert entry.data[:4] == PERFORM_CREATE2_SELECTOR

    value, deployment_data, decoded_salt = decode(
        ["uint256", "bytes", "bytes32"], entry.data[4:]
    )
    assert (value, deployment_data, decoded_salt) == (0, bytecode + args, salt)

    empty_code_reader.get_code.assert_called_once_with(predicted)


def test_encode_create2_is_deterministic(empty_code_reader: MagicMock):
    salt = keccak(text="seed")
    first = encode_create2(b"\x60\x80", b"", salt, SAFE, empty_code_reader)
    second = encode_create2(b"\x60\x80", b"", salt, SAFE, empty_code_reader)
    assert first == second


def test_encode_create2_rejects_taken_address():
    reader = MagicMock()
    reader.get_code.return_value = HexBytes("0x60806040")

    with pytest.raises(AddressAlreadyTaken):
        encode_create2(b"\x60\x80", b"", keccak(text="seed"), SAFE, reader)


def test_encode_create2_uses_custom_create_call(empty_code_reader: MagicMock):
    helper = "0x9b35Af71d77eaf8d7e40252370304687390A1A52"
    encoded, _ = encode_create2(
        b"\x60\x80", b"", keccak(text="seed"), SAFE, empty_code_reader, helper
    )
    [entry] = decode_sub_transactions(encoded)
    assert entry.to_checksum == checksum_hex(helper)
