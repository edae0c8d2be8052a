"""Async JSON-RPC client for a Polygon node."""

from __future__ import annotations

import asyncio
import os
from typing import Any

import httpx

from polyredeem.core.logging import get_logger
from polyredeem.errors import RPCError
from polyredeem.execution.contracts import hex_to_int, to_checksum

logger = get_logger(__name__)

DEFAULT_RPC_URL = "https://polygon-rpc.com"


class PolygonRPC:
    """Minimal Polygon JSON-RPC client built on httpx.

    One ``httpx.AsyncClient`` is reused for the lifetime of the object;
    pass ``client`` to inject a preconfigured one (tests use
    ``httpx.MockTransport``).
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        timeout: float = 30.0,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc_url = rpc_url or os.environ.get("POLYGON_RPC_URL", DEFAULT_RPC_URL)
        self._timeout = timeout
        self._client = client
        self._request_id = 0

    @property
    def url(self) -> str:
        return self._rpc_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def call(self, method: str, params: list[Any]) -> Any:
        """Make a JSON-RPC call and return its ``result``."""
        self._request_id += 1
        client = await self._get_client()
        resp = await client.post(
            self._rpc_url,
            json={
                "jsonrpc": "2.0",
                "method": method,
                "params": params,
                "id": self._request_id,
            },
        )
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as exc:
            raise RPCError(f"RPC returned non-JSON body for {method}") from exc
        if "error" in data:
            raise RPCError(f"RPC error: {data['error']}")
        return data.get("result")

    async def eth_call(self, to: str, data: bytes) -> bytes:
        """Execute eth_call and return raw bytes result."""
        hex_result = await self.call("eth_call", [
            {"to": to_checksum(to), "data": "0x" + data.hex()},
            "latest",
        ])
        return bytes.fromhex(hex_result.replace("0x", "")) if hex_result else b""

    async def get_nonce(self, address: str) -> int:
        result = await self.call("eth_getTransactionCount", [address, "pending"])
        return hex_to_int(result)

    async def get_gas_price(self) -> int:
        result = await self.call("eth_gasPrice", [])
        return hex_to_int(result)

    async def send_raw_transaction(self, signed_raw: bytes) -> str:
        """Send a signed raw transaction, return tx hash."""
        result = await self.call("eth_sendRawTransaction", ["0x" + signed_raw.hex()])
        if not result:
            raise RPCError("eth_sendRawTransaction returned no hash")
        return str(result)

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 60.0,
        poll_interval: float = 2.0,
    ) -> dict[str, Any] | None:
        """Poll for a transaction receipt; None when it does not arrive in time."""
        attempts = max(1, int(timeout / poll_interval))
        for attempt in range(attempts):
            result = await self.call("eth_getTransactionReceipt", [tx_hash])
            if result is not None:
                return result
            if attempt < attempts - 1:
                await asyncio.sleep(poll_interval)
        logger.warning("rpc.receipt_timeout", tx_hash=tx_hash, timeout=timeout)
        return None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
