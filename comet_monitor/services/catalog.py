"""Asset catalog discovery."""
from __future__ import annotations

import logging

from ..config import InstanceConfig
from ..errors import CatalogBuildError
from ..interfaces.gateway import ChainGateway
from ..models import Asset, AssetCatalog
from ..protocols.comet.parser import FACTOR_DECIMALS, from_fixed

logger = logging.getLogger(__name__)


class AssetCatalogBuilder:
    """Build the list of assets an instance accepts, base asset first."""

    async def build(self, instance: InstanceConfig, gateway: ChainGateway) -> AssetCatalog:
        """Fetch every collateral's risk parameters and token metadata.

        The base asset comes from static config. Collaterals follow in
        ascending ledger index order, so ``collaterals[i]`` lines up with
        bit ``i`` of an account's assets-in mask.

        Raises:
            CatalogBuildError: any lookup failed; nothing partial is returned.
        """
        base_cfg = instance.base_asset
        base = Asset(
            symbol=base_cfg.symbol,
            address=base_cfg.address,
            decimals=base_cfg.decimals,
            price_feed=base_cfg.price_feed,
        )

        try:
            count = await gateway.get_num_assets()
            collaterals: list[Asset] = []
            for index in range(count):
                info = await gateway.get_asset_info(index)
                symbol = await gateway.get_token_symbol(info.asset)
                decimals = await gateway.get_token_decimals(info.asset)
                collaterals.append(
                    Asset(
                        symbol=symbol,
                        address=info.asset,
                        decimals=decimals,
                        price_feed=info.price_feed,
                        collateral_factor=from_fixed(
                            info.borrow_collateral_factor, FACTOR_DECIMALS
                        ),
                        liquidation_factor=from_fixed(
                            info.liquidate_collateral_factor, FACTOR_DECIMALS
                        ),
                    )
                )
        except Exception as e:
            raise CatalogBuildError(
                f"Asset catalog build failed for {instance.instance_id}: {e}"
            ) from e

        seen = {base.symbol}
        for asset in collaterals:
            if asset.symbol in seen:
                logger.warning(
                    "Catalog for %s lists symbol %s more than once (%s); "
                    "only the first is exported",
                    instance.instance_id,
                    asset.symbol,
                    asset.address,
                )
            seen.add(asset.symbol)

        catalog = AssetCatalog(base=base, collaterals=tuple(collaterals))
        logger.info(
            "Catalog for %s: base %s, collaterals %s",
            instance.instance_id,
            base.symbol,
            ", ".join(catalog.collateral_symbols) or "none",
        )
        return catalog
