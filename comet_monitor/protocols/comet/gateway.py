"""Comet gateway — typed ledger reads over a raw EVM chain client."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_utils import (
    encode_hex,
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
    to_checksum_address,
)

from ...config import InstanceConfig
from ...interfaces.chain import ChainClient
from ...models import AccountBasic, AssetInfo, WithdrawEvent
from . import parser

logger = logging.getLogger(__name__)

WITHDRAW_TOPIC = encode_hex(
    event_signature_to_log_topic("Withdraw(address,address,uint256)")
)

_USER_BASIC_TYPES = ["int104", "uint64", "uint64", "uint16", "uint8"]
_ASSET_INFO_TYPES = [
    "uint8",    # offset
    "address",  # asset
    "address",  # priceFeed
    "uint64",   # scale
    "uint64",   # borrowCollateralFactor
    "uint64",   # liquidateCollateralFactor
    "uint64",   # liquidationFactor
    "uint128",  # supplyCap
]


def encode_call(signature: str, arg_types: Sequence[str] = (), args: Sequence[Any] = ()) -> bytes:
    """Calldata for ``signature`` (e.g. ``"userBasic(address)"``) with ``args``."""
    return function_signature_to_4byte_selector(signature) + encode(list(arg_types), list(args))


class CometGateway:
    """Read-only access to one Comet deployment and the tokens it lists."""

    def __init__(self, chain_client: ChainClient, config: InstanceConfig) -> None:
        self._client = chain_client
        self._config = config
        self._proxy = to_checksum_address(config.proxy)

    async def _call(
        self,
        signature: str,
        return_types: list[str],
        arg_types: Sequence[str] = (),
        args: Sequence[Any] = (),
        to: str | None = None,
    ) -> tuple[Any, ...]:
        data = await self._client.call(to or self._proxy, encode_call(signature, arg_types, args))
        return decode(return_types, data)

    async def get_block_number(self) -> int:
        return await self._client.get_block_number()

    async def get_withdraw_events(
        self, from_block: int, to_block: int
    ) -> list[WithdrawEvent]:
        """Withdraw events in ``[from_block, to_block]``, split into chunks
        of at most ``log_chunk_size`` blocks when one is configured."""
        if from_block > to_block:
            return []

        chunk = self._config.log_chunk_size or (to_block - from_block + 1)
        events: list[WithdrawEvent] = []
        start = from_block
        while start <= to_block:
            end = min(start + chunk - 1, to_block)
            logs = await self._client.get_logs(self._proxy, [WITHDRAW_TOPIC], start, end)
            logger.debug("Blocks %d-%d: %d Withdraw logs", start, end, len(logs))
            events.extend(parser.parse_withdraw_log(log) for log in logs)
            start = end + 1
        return events

    async def get_user_basic(self, account: str) -> AccountBasic:
        principal, tracking_index, tracking_accrued, assets_in, _ = await self._call(
            "userBasic(address)", _USER_BASIC_TYPES, ["address"], [to_checksum_address(account)]
        )
        return AccountBasic(
            principal=principal,
            base_tracking_index=tracking_index,
            base_tracking_accrued=tracking_accrued,
            assets_in=assets_in,
        )

    async def get_borrow_balance(self, account: str) -> int:
        (balance,) = await self._call(
            "borrowBalanceOf(address)", ["uint256"], ["address"], [to_checksum_address(account)]
        )
        return balance

    async def get_collateral_balance(self, account: str, asset: str) -> int:
        (balance,) = await self._call(
            "collateralBalanceOf(address,address)",
            ["uint128"],
            ["address", "address"],
            [to_checksum_address(account), to_checksum_address(asset)],
        )
        return balance

    async def get_num_assets(self) -> int:
        (count,) = await self._call("numAssets()", ["uint8"])
        return count

    async def get_asset_info(self, index: int) -> AssetInfo:
        values = await self._call("getAssetInfo(uint8)", _ASSET_INFO_TYPES, ["uint8"], [index])
        offset, asset, price_feed, scale, bcf, lcf, liq_factor, supply_cap = values
        return AssetInfo(
            offset=offset,
            asset=to_checksum_address(asset),
            price_feed=to_checksum_address(price_feed),
            scale=scale,
            borrow_collateral_factor=bcf,
            liquidate_collateral_factor=lcf,
            liquidation_factor=liq_factor,
            supply_cap=supply_cap,
        )

    async def get_price(self, price_feed: str) -> int:
        (price,) = await self._call(
            "getPrice(address)", ["uint256"], ["address"], [to_checksum_address(price_feed)]
        )
        return price

    async def get_token_symbol(self, token: str) -> str:
        data = await self._client.call(to_checksum_address(token), encode_call("symbol()"))
        return parser.decode_symbol(data)

    async def get_token_decimals(self, token: str) -> int:
        (decimals,) = await self._call("decimals()", ["uint8"], to=to_checksum_address(token))
        return decimals
