from __future__ import annotations

import json
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

SAFE_ABI_PATH = ABIS_DIR / "Safe.json"
MULTI_SEND_ABI_PATH = ABIS_DIR / "MultiSend.json"
CREATE_CALL_ABI_PATH = ABIS_DIR / "CreateCall.json"


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


def load_safe_abi() -> list[dict]:
    """Load the Safe ABI (nonce and getTransactionHash only)."""
    return load_abi(SAFE_ABI_PATH)


def load_multi_send_abi() -> list[dict]:
    """Load the MultiSend ABI."""
    return load_abi(MULTI_SEND_ABI_PATH)


def load_create_call_abi() -> list[dict]:
    return load_abi(CREATE_CALL_ABI_PATH)
