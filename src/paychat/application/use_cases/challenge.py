"""Use case: describe the payment a gated resource requires."""

from __future__ import annotations

from decimal import Decimal

from ...domain.constants import (
    CHAIN_ID,
    NATIVE_ASSET,
    NATIVE_DECIMALS,
    NATIVE_NAME,
    NATIVE_SYMBOL,
    QUERY_PRICE_WEI,
    SCHEME_EXACT,
    network_id,
)
from ...domain.entities import PaymentRequirement


def format_amount(amount: int, decimals: int, symbol: str) -> str:
    """Render base units as a human amount, e.g. 10**15 wei -> '0.001 MON'."""
    human = Decimal(amount).scaleb(-decimals).normalize()
    return f"{human:f} {symbol}"


class ChallengeBuilder:
    """Builds the x402 payment terms for a flat-fee, native-asset payment.

    Pure and deterministic: no I/O, same inputs give the same requirement.
    """

    def __init__(
        self,
        price_wei: int = QUERY_PRICE_WEI,
        chain_id: int = CHAIN_ID,
        asset_name: str = NATIVE_NAME,
        asset_symbol: str = NATIVE_SYMBOL,
        asset_decimals: int = NATIVE_DECIMALS,
    ) -> None:
        if price_wei < 0:
            raise ValueError("price_wei must be non-negative")
        self.price_wei = price_wei
        self.chain_id = chain_id
        self._asset_name = asset_name
        self._asset_symbol = asset_symbol
        self._asset_decimals = asset_decimals

    def build_challenge(self, resource_url: str, recipient: str) -> PaymentRequirement:
        return PaymentRequirement(
            scheme=SCHEME_EXACT,
            network=network_id(self.chain_id),
            max_amount_required=self.price_wei,
            resource=resource_url,
            pay_to=recipient,
            asset=NATIVE_ASSET,
            output_schema={
                "input": {"type": "http", "method": "POST", "discoverable": True}
            },
            extra={
                "recipientAddress": recipient,
                "name": self._asset_name,
                "symbol": self._asset_symbol,
                "decimals": self._asset_decimals,
                "priceFormatted": format_amount(
                    self.price_wei, self._asset_decimals, self._asset_symbol
                ),
            },
        )

    def build_accepts(self, resource_url: str, recipient: str) -> list[PaymentRequirement]:
        """All accepted payment options. Only one is offered today."""
        return [self.build_challenge(resource_url, recipient)]
