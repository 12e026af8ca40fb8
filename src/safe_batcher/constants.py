"""Safe helper contract addresses."""

# Safe v1.3.0 canonical deployments (same address on every supported chain)
# https://github.com/safe-global/safe-deployments
MULTI_SEND_ADDRESS = "0xA238CBeb142c10Ef7Ad8442C6D1f9E89e07e7761"
CREATE_CALL_ADDRESS = "0x7cbB62EaA69F79e6873cD1ecB2392971036cFAa4"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_SAFE_VERSION = "1.3.0"

MAX_UINT256 = 2**256 - 1
