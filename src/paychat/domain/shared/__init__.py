"""Shared domain protocols.

This package is domain-accessible and should not depend on application code.
"""

from .chain_oracle_protocol import ChainOracleProtocol
from .completion_protocol import CompletionProviderProtocol
from .wallet_protocol import WalletProtocol

__all__ = ["ChainOracleProtocol", "CompletionProviderProtocol", "WalletProtocol"]
