from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from ..domain.constants import CHAIN_ID, QUERY_PRICE_WEI


class Settings(BaseModel):
    gateway_url: str
    chain_rpc_url: str
    chain_id: int
    wallet_private_key: str
    max_price_wei: int
    model: Optional[str] = None

    @field_validator("gateway_url", "chain_rpc_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("URL must include a host")
        return v

    @field_validator("wallet_private_key")
    @classmethod
    def validate_wallet_private_key(cls, v: str) -> str:
        if not v:
            raise ValueError("Wallet private key cannot be empty")
        return v


def get_settings() -> Settings:
    return Settings(
        gateway_url=os.environ.get(
            "CLIENT_GATEWAY_URL", "http://localhost:8000/api/chat"
        ),
        chain_rpc_url=os.environ.get(
            "CLIENT_CHAIN_RPC_URL", "https://testnet-rpc.monad.xyz"
        ),
        chain_id=int(os.environ.get("CLIENT_CHAIN_ID", str(CHAIN_ID))),
        wallet_private_key=os.environ.get("CLIENT_WALLET_PRIVATE_KEY", ""),
        max_price_wei=int(
            os.environ.get("CLIENT_MAX_PRICE_WEI", str(QUERY_PRICE_WEI))
        ),
        model=os.environ.get("CLIENT_MODEL"),
    )
