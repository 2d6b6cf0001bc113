"""Asset price refresh from the instance's price feeds."""
from __future__ import annotations

import logging

from ..errors import PriceFetchError
from ..interfaces.gateway import ChainGateway
from ..models import AssetCatalog
from ..protocols.comet.parser import PRICE_DECIMALS, from_fixed

logger = logging.getLogger(__name__)


class PriceRefresher:
    """Price every cataloged asset, base included."""

    async def refresh(self, gateway: ChainGateway, catalog: AssetCatalog) -> AssetCatalog:
        """Return a copy of ``catalog`` with fresh prices.

        All-or-nothing: a single failed feed raises PriceFetchError and the
        caller keeps its previous prices.
        """
        prices: dict[str, float] = {}
        for asset in catalog:
            try:
                raw = await gateway.get_price(asset.price_feed)
            except Exception as e:
                raise PriceFetchError(
                    f"Price fetch failed for {asset.symbol} ({asset.price_feed}): {e}"
                ) from e
            prices[asset.symbol] = from_fixed(raw, PRICE_DECIMALS)

        logger.info("Fetched prices from price feeds:")
        for symbol, price in prices.items():
            logger.info("  %s: $%.4f", symbol, price)

        return catalog.with_prices(prices)
