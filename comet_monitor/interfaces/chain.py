"""Chain client protocol — blockchain RPC abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for read-only EVM JSON-RPC interactions."""

    async def get_block_number(self) -> int: ...

    async def call(self, to: str, data: bytes) -> bytes: ...

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        from_block: int,
        to_block: int,
    ) -> list[dict[str, Any]]: ...
