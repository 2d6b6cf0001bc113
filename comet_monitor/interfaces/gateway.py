"""Chain gateway protocol — the ledger reads the sync pipeline needs."""
from typing import Protocol

from ..models import AccountBasic, AssetInfo, WithdrawEvent


class ChainGateway(Protocol):
    """Read-only view of one lending-ledger instance.

    Every method returns raw on-chain integers; scaling to decimal units
    happens in the services. Any failure surfaces as an exception.
    """

    async def get_block_number(self) -> int: ...

    async def get_withdraw_events(
        self, from_block: int, to_block: int
    ) -> list[WithdrawEvent]: ...

    async def get_user_basic(self, account: str) -> AccountBasic: ...

    async def get_borrow_balance(self, account: str) -> int: ...

    async def get_collateral_balance(self, account: str, asset: str) -> int: ...

    async def get_num_assets(self) -> int: ...

    async def get_asset_info(self, index: int) -> AssetInfo: ...

    async def get_price(self, price_feed: str) -> int: ...

    async def get_token_symbol(self, token: str) -> str: ...

    async def get_token_decimals(self, token: str) -> int: ...
