"""Pure decoding functions for Comet data — no I/O."""
from __future__ import annotations

from typing import Any, Sequence

from eth_abi import decode
from eth_utils import decode_hex, to_checksum_address

from ...models import WithdrawEvent

# Collateral factors are 1e18 fixed-point, Comet prices are 1e8.
FACTOR_DECIMALS = 18
PRICE_DECIMALS = 8


def from_fixed(raw: int, decimals: int) -> float:
    """Scale a raw on-chain integer down to decimal units.

    Examples:
        from_fixed(850000000000000000, 18) → 0.85
        from_fixed(1500000, 6) → 1.5
    """
    return int(raw) / (10**decimals)


def decode_assets_in(assets_in: int, symbols: Sequence[str]) -> set[str]:
    """Collateral symbols whose bit is set in an account's assets-in mask.

    Bit ``i`` selects ``symbols[i]``; ``symbols`` are the catalog's non-base
    assets in ledger index order. Bits past the end of ``symbols`` are ignored.
    """
    return {symbol for i, symbol in enumerate(symbols) if assets_in & (1 << i)}


def topic_to_address(topic: str) -> str:
    """Checksummed address from a 32-byte indexed topic."""
    return to_checksum_address("0x" + topic[-40:])


def parse_withdraw_log(log: dict[str, Any]) -> WithdrawEvent:
    """Decode a raw ``Withdraw(address indexed, address indexed, uint)`` log."""
    topics = log.get("topics", [])
    if len(topics) < 3:
        raise ValueError(f"Withdraw log has {len(topics)} topics, expected 3")

    (amount,) = decode(["uint256"], decode_hex(log.get("data", "0x")))
    block = log.get("blockNumber") or "0x0"

    return WithdrawEvent(
        src=topic_to_address(topics[1]),
        to=topic_to_address(topics[2]),
        amount=amount,
        block_number=int(block, 16) if isinstance(block, str) else int(block),
    )


def decode_symbol(data: bytes) -> str:
    """Decode an ERC-20 ``symbol()`` return value.

    Some older tokens (MKR, SAI) return ``bytes32`` rather than ``string``.
    """
    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    (symbol,) = decode(["string"], data)
    return symbol
