"""EVM JSON-RPC client with fallback support."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi
from eth_utils import decode_hex, encode_hex

from ...config import ChainConfig
from ...errors import RpcError

logger = logging.getLogger(__name__)


class EvmClient:
    """EVM node RPC client with automatic endpoint fallback.

    Each call carries a total timeout of ``rpc_timeout`` seconds; a timeout
    is treated like any other endpoint failure.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._request_id = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json(content_type=None)
                        if "error" in result:
                            raise RpcError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint #%d", rpc_index)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except Exception as e:
                last_error = e
                # endpoint URLs usually embed an API key; log the index only
                logger.warning(
                    "RPC endpoint #%d failed on %s: %r", rpc_index, method, e
                )
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RpcError(f"All RPC endpoints failed. Last error: {last_error!r}")

    async def get_block_number(self) -> int:
        """Current chain head."""
        return int(await self.rpc_call("eth_blockNumber", []), 16)

    async def call(self, to: str, data: bytes) -> bytes:
        """Read-only contract call against the latest block."""
        result = await self.rpc_call(
            "eth_call", [{"to": to, "data": encode_hex(data)}, "latest"]
        )
        return decode_hex(result or "0x")

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        from_block: int,
        to_block: int,
    ) -> list[dict[str, Any]]:
        """Logs emitted by ``address`` in the inclusive block range."""
        result = await self.rpc_call(
            "eth_getLogs",
            [
                {
                    "address": address,
                    "topics": topics,
                    "fromBlock": hex(from_block),
                    "toBlock": hex(to_block),
                }
            ],
        )
        return list(result or [])
