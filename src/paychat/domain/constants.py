"""Fixed x402 protocol constants for the Monad testnet deployment."""

from __future__ import annotations

X402_VERSION = 1

PAYMENT_HEADER = "x-payment"
RECEIPT_HEADER = "X-Payment-Receipt"

SCHEME_EXACT = "exact"
NATIVE_ASSET = "native"

CHAIN_ID = 10143
NATIVE_DECIMALS = 18
NATIVE_NAME = "MON"
NATIVE_SYMBOL = "MON"

# 0.001 MON in wei
QUERY_PRICE_WEI = 10**15

MAX_TIMEOUT_SECONDS = 86400
PAYMENT_DESCRIPTION = "AI Query Payment"
RESOURCE_MIME_TYPE = "application/json"

UINT256_MAX = 2**256 - 1

# Receipt status sentinel for a successful EVM transaction
RECEIPT_STATUS_SUCCESS = 1


def network_id(chain_id: int) -> str:
    """CAIP-2 network identifier for an EVM chain."""
    return f"eip155:{chain_id}"
