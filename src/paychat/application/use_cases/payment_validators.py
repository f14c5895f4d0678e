"""Pure validation functions for on-chain payment verification.

Ledger responses are untyped JSON documents. These helpers check one field
at a time so that a missing or oddly typed field degrades to a rejection
instead of an exception deep inside the verifier.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ...domain.constants import RECEIPT_STATUS_SUCCESS, UINT256_MAX


def parse_quantity(raw: Any, default: int = 0) -> int:
    """Parse a JSON-RPC quantity into an unsigned integer. Pure function.

    Accepts 0x-prefixed hex strings (the JSON-RPC encoding), decimal
    strings and plain integers.

    Args:
        raw: The field value as found in the document
        default: Value used when the field is absent or empty

    Returns:
        The parsed integer.

    Raises:
        ValueError: If the value is malformed, negative or exceeds 2**256 - 1.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise ValueError(f"Quantity must be a number, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if text in ("", "0x", "0X"):
            return default
        try:
            if text[:2].lower() == "0x":
                value = int(text[2:], 16)
            else:
                value = int(text, 10)
        except ValueError:
            raise ValueError(f"Malformed quantity: {raw!r}") from None
    else:
        raise ValueError(f"Quantity must be a string or integer, got {type(raw).__name__}")

    if value < 0:
        raise ValueError(f"Quantity must be unsigned, got {value}")
    if value > UINT256_MAX:
        raise ValueError("Quantity exceeds 256 bits")
    return value


def receipt_succeeded(receipt: Mapping[str, Any]) -> bool:
    """Return True only if the receipt carries the canonical success status.

    Receipts without a status field (pre-Byzantium) do not pass.
    """
    raw = receipt.get("status")
    if raw is None:
        return False
    try:
        return parse_quantity(raw) == RECEIPT_STATUS_SUCCESS
    except ValueError:
        return False


def addresses_match(actual: Any, expected: str) -> bool:
    """Compare two hex addresses ignoring checksum casing."""
    if not isinstance(actual, str) or not isinstance(expected, str):
        return False
    actual = actual.strip().lower()
    expected = expected.strip().lower()
    return bool(actual) and actual == expected


def value_covers_price(value: int, min_amount: int) -> bool:
    """Overpayment is fine, underpayment is not."""
    return value >= min_amount


def chain_id_matches(transaction: Mapping[str, Any], chain_id: Optional[int]) -> bool:
    """Check the transaction's chainId, if it declares one.

    Legacy transactions may omit the field; those are not rejected here.
    """
    if chain_id is None:
        return True
    raw = transaction.get("chainId")
    if raw is None:
        return True
    try:
        return parse_quantity(raw) == chain_id
    except ValueError:
        return False
