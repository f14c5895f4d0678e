from __future__ import annotations

import os
import re
from typing import Optional

from pydantic import BaseModel, field_validator

from ..application.use_cases.completion_relay import DEFAULT_SYSTEM_PROMPT
from ..domain.constants import CHAIN_ID, QUERY_PRICE_WEI
from ..infrastructure.completion.gemini_provider import (
    DEFAULT_GEMINI_MODEL,
    GEMINI_BASE_URL,
)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class Settings(BaseModel):
    """Typed gateway settings built from environment variables."""

    # Payment settings
    pay_to_address: Optional[str] = None
    chain_rpc_url: str = "https://testnet-rpc.monad.xyz"
    chain_rpc_timeout: float = 10.0
    chain_id: int = CHAIN_ID
    query_price_wei: int = QUERY_PRICE_WEI
    public_base_url: Optional[str] = None
    redemption_store_url: Optional[str] = None

    # Completion settings
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = GEMINI_BASE_URL
    default_model: str = DEFAULT_GEMINI_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_workers: int = 1
    api_cors_origins: list[str] = ["*"]

    # Application settings
    app_name: str = "PayChat"
    app_version: str = "1.0.0"

    @field_validator("pay_to_address")
    @classmethod
    def validate_pay_to_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not _ADDRESS_RE.match(v):
            raise ValueError(f"Invalid recipient address: {v!r}")
        return v

    @field_validator("chain_rpc_timeout")
    @classmethod
    def validate_chain_rpc_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Chain RPC timeout must be positive")
        return v

    @field_validator("query_price_wei")
    @classmethod
    def validate_query_price_wei(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Query price must be positive")
        return v

    @field_validator("public_base_url")
    @classmethod
    def validate_public_base_url(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        return v.rstrip("/")


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    return Settings(
        pay_to_address=os.environ.get("GATEWAY_PAY_TO_ADDRESS"),
        chain_rpc_url=os.environ.get(
            "GATEWAY_CHAIN_RPC_URL", "https://testnet-rpc.monad.xyz"
        ),
        chain_rpc_timeout=float(os.environ.get("GATEWAY_CHAIN_RPC_TIMEOUT", "10.0")),
        chain_id=int(os.environ.get("GATEWAY_CHAIN_ID", str(CHAIN_ID))),
        query_price_wei=int(
            os.environ.get("GATEWAY_QUERY_PRICE_WEI", str(QUERY_PRICE_WEI))
        ),
        public_base_url=os.environ.get("GATEWAY_PUBLIC_BASE_URL"),
        redemption_store_url=os.environ.get("GATEWAY_REDEMPTION_STORE_URL") or None,
        gemini_api_key=os.environ.get("GATEWAY_GEMINI_API_KEY"),
        gemini_base_url=os.environ.get("GATEWAY_GEMINI_BASE_URL", GEMINI_BASE_URL),
        default_model=os.environ.get("GATEWAY_DEFAULT_MODEL", DEFAULT_GEMINI_MODEL),
        system_prompt=os.environ.get("GATEWAY_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
        api_host=os.environ.get("GATEWAY_API_HOST", "0.0.0.0"),
        api_port=int(os.environ.get("GATEWAY_API_PORT", "8000")),
        api_debug=os.environ.get("GATEWAY_API_DEBUG", "false").lower() == "true",
        api_workers=int(os.environ.get("GATEWAY_API_WORKERS", "1")),
        api_cors_origins=os.environ.get("GATEWAY_API_CORS_ORIGINS", "*").split(","),
        app_name=os.environ.get("GATEWAY_APP_NAME", "PayChat"),
        app_version=os.environ.get("GATEWAY_APP_VERSION", "1.0.0"),
    )
