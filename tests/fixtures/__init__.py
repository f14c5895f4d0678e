"""Test fixtures for in-memory implementations."""

from .fake_chain_oracle import FakeChainOracle
from .in_memory_storage import InMemoryKeyValueStore
from .scripted_completion_provider import ScriptedCompletionProvider

__all__ = [
    "FakeChainOracle",
    "InMemoryKeyValueStore",
    "ScriptedCompletionProvider",
]
