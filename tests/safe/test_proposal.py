import json
from unittest.mock import MagicMock

import pytest

from safe_batcher.constants import MULTI_SEND_ADDRESS, ZERO_ADDRESS
from safe_batcher.encoding.batch import assemble
from safe_batcher.encoding.hexfmt import checksum_hex, format_checksum_address, format_hex
from safe_batcher.encoding.subtx import Operation, encode_call
from safe_batcher.errors import SignerFailure, TransportFailure, UnsupportedNetwork
from safe_batcher.safe.proposal import (
    REQUEST_HEADERS,
    ProposalResult,
    build_outer_transaction,
    encode_multi_send,
    pack_signature,
    proposal_url,
    send_txs,
)

SAFE = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
SENDER = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
TX_HASH = b"\x11" * 32


class StubSigner:
    """Deterministic signer returning fixed (v, r, s)."""

    def __init__(self, address: str = SENDER):
        self.address = address
        self.calls: list[tuple[str, bytes]] = []

    def address_of(self, key_id: str) -> str:
        return self.address

    def sign(self, key_id: str, message_hash: bytes) -> tuple[int, int, int]:
        self.calls.append((key_id, message_hash))
        return 27, 1, 2


@pytest.fixture
def batch() -> bytes:
    return assemble(
        [
            encode_call("0x0000000000000000000000000000000000000001", 5, b"\xaa\xbb"),
            encode_call("0x0000000000000000000000000000000000000002", 0, b""),
        ]
    )


@pytest.fixture
def hasher() -> MagicMock:
    mock = MagicMock()
    mock.compute_transaction_hash.return_value = TX_HASH
    return mock


@pytest.fixture
def transport() -> MagicMock:
    mock = MagicMock()
    mock.post.return_value = (201, b"")
    return mock


def _send(batch, hasher, signer, transport, **kwargs):
    params = {"chain_id": 1, "hasher": hasher, "signer": signer, "transport": transport}
    params.update(kwargs)
    return send_txs(batch, 7, SENDER.lower(), SAFE.lower(), **params)


def test_pack_signature_layout():
    signature = pack_signature(28, 1, 2)
    assert len(signature) == 65
    assert signature[:32] == (1).to_bytes(32, "big")
    assert signature[32:64] == (2).to_bytes(32, "big")
    assert signature[64] == 28


def test_pack_signature_accepts_bytes():
    assert pack_signature(27, b"\x01", b"\x02" * 32) == (
        (1).to_bytes(32, "big") + b"\x02" * 32 + b"\x1b"
    )
    with pytest.raises(ValueError):
        pack_signature(27, b"\x01" * 33, b"")


def test_proposal_url_single_slash():
    url = proposal_url(
        "https://safe-transaction-mainnet.safe.global/api/v1/safes/", SAFE.lower()
    )
    assert url == (
        "https://safe-transaction-mainnet.safe.global/api/v1/safes/"
        f"{SAFE}/multisig-transactions/"
    )


def test_outer_transaction_is_delegate_call_into_multi_send(batch: bytes):
    tx = build_outer_transaction(batch, SENDER, value=3)

    assert tx.to == checksum_hex(MULTI_SEND_ADDRESS)
    assert tx.operation == Operation.DELEGATE_CALL
    assert tx.value == 3
    assert tx.data == encode_multi_send(batch)
    assert (tx.safe_tx_gas, tx.base_gas, tx.gas_price) == (0, 0, 0)
    assert tx.gas_token == ZERO_ADDRESS
    assert tx.refund_receiver == SENDER


def test_send_txs_builds_expected_request(batch, hasher, transport):
    signer = StubSigner()

    result = _send(batch, hasher, signer, transport)

    assert result.status_code == 201
    assert result.response_body == b""
    assert result.ok

    url, headers, body = transport.post.call_args.args
    assert url == (
        "https://safe-transaction-mainnet.safe.global/api/v1/safes/"
        f"{SAFE}/multisig-transactions/"
    )
    assert headers == ["Accept: application/json", "Content-Type: application/json"]
    assert body == result.request_body

    payload = json.loads(body)
    assert list(payload.keys()) == [
        "safe",
        "to",
        "value",
        "data",
        "operation",
        "gasToken",
        "safeTxGas",
        "baseGas",
        "gasPrice",
        "refundReceiver",
        "nonce",
        "contractTransactionHash",
        "sender",
        "signature",
        "origin",
    ]
    assert payload["safe"] == "0x" + format_checksum_address(bytes.fromhex(SAFE[2:]))
    assert payload["to"] == checksum_hex(MULTI_SEND_ADDRESS)
    assert payload["value"] == 0
    assert payload["data"] == format_hex(encode_multi_send(batch))
    assert payload["operation"] == 1
    assert payload["gasToken"] == ZERO_ADDRESS
    assert payload["safeTxGas"] == "0"
    assert payload["baseGas"] == "0"
    assert payload["gasPrice"] == "0"
    assert payload["nonce"] == "7"
    assert payload["contractTransactionHash"] == "0x" + "11" * 32
    assert payload["sender"] == SENDER
    assert payload["refundReceiver"] == SENDER
    assert payload["origin"] == SENDER
    assert payload["signature"] == (
        "0x" + (1).to_bytes(32, "big").hex() + (2).to_bytes(32, "big").hex() + "1b"
    )
    assert result.safe_tx_hash == "0x" + "11" * 32


def test_send_txs_hashes_all_fields_with_nonce(batch, hasher, transport):
    signer = StubSigner()

    _send(batch, hasher, signer, transport, value=9)

    hasher.compute_transaction_hash.assert_called_once_with(
        to=checksum_hex(MULTI_SEND_ADDRESS),
        value=9,
        data=encode_multi_send(batch),
        operation=1,
        safe_tx_gas=0,
        base_gas=0,
        gas_price=0,
        gas_token=ZERO_ADDRESS,
        refund_receiver=SENDER,
        nonce=7,
    )
    assert signer.calls == [(SENDER.lower(), TX_HASH)]


def test_send_txs_origin_override(batch, hasher, transport):
    result = _send(batch, hasher, StubSigner(), transport, origin="deploy-script")
    assert json.loads(result.request_body)["origin"] == "deploy-script"


def test_unsupported_network_fails_before_collaborators(batch, hasher, transport):
    signer = MagicMock()

    with pytest.raises(UnsupportedNetwork) as exc_info:
        _send(batch, hasher, signer, transport, chain_id=999999)

    assert exc_info.value.chain_id == 999999
    hasher.compute_transaction_hash.assert_not_called()
    signer.sign.assert_not_called()
    signer.address_of.assert_not_called()
    transport.post.assert_not_called()


def test_signer_failure_propagates_without_sending(batch, hasher, transport):
    signer = MagicMock()
    signer.address_of.return_value = SENDER
    signer.sign.side_effect = SignerFailure("hardware wallet locked")

    with pytest.raises(SignerFailure, match="hardware wallet locked"):
        _send(batch, hasher, signer, transport)

    transport.post.assert_not_called()


def test_transport_failure_propagates(batch, hasher, transport):
    transport.post.side_effect = TransportFailure("connection reset")

    with pytest.raises(TransportFailure, match="connection reset"):
        _send(batch, hasher, StubSigner(), transport)


def test_error_status_is_returned_not_raised(batch, hasher, transport):
    transport.post.return_value = (422, b'{"nonFieldErrors": ["bad signature"]}')

    result = _send(batch, hasher, StubSigner(), transport)

    assert result.status_code == 422
    assert not result.ok
    assert result.response_body == b'{"nonFieldErrors": ["bad signature"]}'


def test_wrong_hash_length_is_rejected(batch, hasher, transport):
    hasher.compute_transaction_hash.return_value = b"\x11" * 31
    signer = StubSigner()

    with pytest.raises(ValueError, match="32 bytes"):
        _send(batch, hasher, signer, transport)

    assert signer.calls == []


def test_empty_batch_is_proposable(hasher, transport):
    result = _send(b"", hasher, StubSigner(), transport)
    assert json.loads(result.request_body)["data"] == format_hex(encode_multi_send(b""))


def test_request_headers_constant_unchanged():
    assert REQUEST_HEADERS == [
        "Accept: application/json",
        "Content-Type: application/json",
    ]


def test_proposal_result_unpacks_as_triple():
    status, response, request = ProposalResult(201, b"{}", '{"contractTransactionHash": "0x00"}')
    assert (status, response, request) == (201, b"{}", '{"contractTransactionHash": "0x00"}')
