"""Pay-per-query AI chat gateway gated by on-chain x402 micropayments."""

__version__ = "1.0.0"
