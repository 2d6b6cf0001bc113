"""Pure health calculations for borrowers — no I/O."""
from __future__ import annotations

import math
from dataclasses import replace

from ..models import AssetCatalog, Borrower


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves away from zero. Infinities pass through."""
    if math.isinf(value):
        return value
    return math.floor(value + 0.5) if value >= 0 else -math.floor(-value + 0.5)


def calc_percent_to_liquidation(borrow_value: float, liquidation_limit_value: float) -> float:
    """Debt value as a percentage of the liquidation limit.

    A borrower with no liquidation capacity is infinitely close to
    liquidation.
    """
    if liquidation_limit_value <= 0:
        return math.inf
    return round_half_up(borrow_value / liquidation_limit_value * 100)


def calc_liquidation_price(
    borrow_value: float, collateral_amount: float, liquidation_factor: float
) -> float:
    """Collateral price at which a single-collateral position is liquidatable.

    liquidation_price = borrow_value / collateral_amount / liquidation_factor
    """
    if collateral_amount <= 0 or liquidation_factor <= 0:
        return math.inf
    return borrow_value / collateral_amount / liquidation_factor


def compute_health(catalog: AssetCatalog, borrower: Borrower) -> Borrower:
    """Return ``borrower`` with borrow limit, liquidation limit,
    percent-to-liquidation and (single collateral only) liquidation price.

    Limits are expressed in base asset units.
    """
    base_price = catalog.base.price
    if base_price is None or base_price <= 0:
        raise ValueError(f"Base asset {catalog.base.symbol} has no usable price")

    borrow_value = borrower.borrow_balance * base_price

    borrow_limit = 0.0
    liquidation_limit = 0.0
    for symbol, amount in borrower.collaterals.items():
        asset = catalog.get(symbol)
        if asset is None:
            continue
        price = asset.price or 0.0
        borrow_limit += amount * asset.collateral_factor * price
        liquidation_limit += amount * asset.liquidation_factor * price

    liquidation_price = None
    if len(borrower.collaterals) == 1:
        ((symbol, amount),) = borrower.collaterals.items()
        asset = catalog.get(symbol)
        factor = asset.liquidation_factor if asset is not None else 0.0
        liquidation_price = calc_liquidation_price(borrow_value, amount, factor)

    return replace(
        borrower,
        borrow_limit=borrow_limit / base_price,
        liquidation_limit=liquidation_limit / base_price,
        percent_to_liquidation=calc_percent_to_liquidation(borrow_value, liquidation_limit),
        liquidation_price=liquidation_price,
    )


def compute_all(catalog: AssetCatalog, borrowers: dict[str, Borrower]) -> dict[str, Borrower]:
    return {account: compute_health(catalog, b) for account, b in borrowers.items()}
