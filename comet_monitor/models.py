"""Data models — all frozen (immutable)."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Iterator

# ---------------------------------------------------------------------------
# Raw ledger reads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountBasic:
    """Result of ``userBasic(account)``."""

    principal: int
    base_tracking_index: int = 0
    base_tracking_accrued: int = 0
    assets_in: int = 0


@dataclass(frozen=True)
class AssetInfo:
    """Result of ``getAssetInfo(i)``. Factors are raw 1e18 fixed-point."""

    offset: int
    asset: str
    price_feed: str
    scale: int
    borrow_collateral_factor: int
    liquidate_collateral_factor: int
    liquidation_factor: int = 0
    supply_cap: int = 0


@dataclass(frozen=True)
class WithdrawEvent:
    """One ``Withdraw(src, to, amount)`` log entry."""

    src: str
    to: str
    amount: int
    block_number: int = 0


# ---------------------------------------------------------------------------
# Snapshot records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Asset:
    """One asset accepted by an instance (the base asset or a collateral)."""

    symbol: str
    address: str
    decimals: int
    price_feed: str
    collateral_factor: float = 0.0
    liquidation_factor: float = 0.0
    price: float | None = None


@dataclass(frozen=True)
class AssetCatalog:
    """Base asset plus collaterals in ledger index order.

    Bit ``i`` of an account's assets-in mask refers to ``collaterals[i]``.
    """

    base: Asset
    collaterals: tuple[Asset, ...] = ()

    def __iter__(self) -> Iterator[Asset]:
        yield self.base
        yield from self.collaterals

    def __len__(self) -> int:
        return 1 + len(self.collaterals)

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(a.symbol for a in self)

    @property
    def collateral_symbols(self) -> tuple[str, ...]:
        return tuple(a.symbol for a in self.collaterals)

    def get(self, symbol: str) -> Asset | None:
        for asset in self.collaterals:
            if asset.symbol == symbol:
                return asset
        if self.base.symbol == symbol:
            return self.base
        return None

    def with_prices(self, prices: dict[str, float]) -> AssetCatalog:
        """Return a copy with prices replaced for every symbol in ``prices``."""

        def _priced(asset: Asset) -> Asset:
            if asset.symbol in prices:
                return replace(asset, price=prices[asset.symbol])
            return asset

        return AssetCatalog(
            base=_priced(self.base),
            collaterals=tuple(_priced(a) for a in self.collaterals),
        )

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Symbol → asset fields, base asset first."""
        out: dict[str, dict[str, Any]] = {}
        for asset in self:
            fields = asdict(asset)
            del fields["symbol"]
            out.setdefault(asset.symbol, fields)
        return out


@dataclass(frozen=True)
class Borrower:
    """An account with net debt and its derived risk fields."""

    account: str
    borrow_balance: float
    collaterals: dict[str, float] = field(default_factory=dict)
    borrow_limit: float = 0.0
    liquidation_limit: float = 0.0
    percent_to_liquidation: float = 0.0
    liquidation_price: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "borrow_balance": self.borrow_balance,
            "collaterals": dict(self.collaterals),
            "borrow_limit": self.borrow_limit,
            "liquidation_limit": self.liquidation_limit,
            "percent_to_liquidation": _finite_or_none(self.percent_to_liquidation),
            "liquidation_price": _finite_or_none(self.liquidation_price),
        }


@dataclass(frozen=True)
class InstanceState:
    """Everything known about one instance as of its last committed sync."""

    block: int = 0
    last_sync: float = 0.0
    catalog: AssetCatalog | None = None
    num_collaterals: int = 0
    borrowers: dict[str, Borrower] = field(default_factory=dict)


@dataclass(frozen=True)
class AccountResult:
    """Outcome of indexing one account.

    ``borrower`` is None both for non-borrowers and for failed lookups;
    ``error`` tells them apart.
    """

    account: str
    borrower: Borrower | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _finite_or_none(value: float | None) -> float | None:
    if value is None or math.isinf(value) or math.isnan(value):
        return None
    return value
