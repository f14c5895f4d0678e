"""Ledger oracle backed by an EVM JSON-RPC endpoint."""

from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Mapping, Optional, Type
from types import TracebackType

import httpx

from ...domain.entities import OracleLookup, ReceiptDocument, TransactionDocument
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)

_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

# Errors that mean "the request was bad", not "the node is unwell".
_CLIENT_ERROR_CODES = {-32600, -32602}


def is_tx_hash(value: str) -> bool:
    return bool(_TX_HASH_RE.match(value))


class JsonRpcChainOracle:
    """Read-only ledger client issuing one JSON-RPC call per lookup.

    No retries and no caching. Nothing is raised to the caller: a null
    result is NOT_FOUND, while transport failures, HTTP errors, malformed
    JSON and node-side errors are UNAVAILABLE.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(rpc_url, timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def get_receipt(self, tx_hash: str) -> OracleLookup[ReceiptDocument]:
        return await self._lookup("eth_getTransactionReceipt", tx_hash)

    async def get_transaction(self, tx_hash: str) -> OracleLookup[TransactionDocument]:
        return await self._lookup("eth_getTransactionByHash", tx_hash)

    async def _lookup(self, method: str, tx_hash: str) -> OracleLookup[Mapping[str, Any]]:
        if not is_tx_hash(tx_hash):
            # Cannot name a transaction; no need to ask the node.
            return OracleLookup.miss()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": [tx_hash],
        }
        try:
            resp = await self._http.post("", json=payload)
        except httpx.HTTPStatusError as e:
            logger.warning("%s returned HTTP %s", method, e.response.status_code)
            return OracleLookup.failed(f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning("%s failed: %s", method, e)
            return OracleLookup.failed(f"{type(e).__name__}: {e}")

        try:
            document = resp.json()
        except ValueError:
            return OracleLookup.failed("malformed JSON response")
        if not isinstance(document, Mapping):
            return OracleLookup.failed("JSON-RPC response is not an object")

        error = document.get("error")
        if error:
            code = error.get("code") if isinstance(error, Mapping) else None
            message = error.get("message") if isinstance(error, Mapping) else error
            if code in _CLIENT_ERROR_CODES:
                return OracleLookup.miss()
            return OracleLookup.failed(f"JSON-RPC error {code}: {message}")

        result = document.get("result")
        if not isinstance(result, Mapping):
            return OracleLookup.miss()
        return OracleLookup.hit(result)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "JsonRpcChainOracle":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
