"""Per-instance synchronization: catalog → prices → borrowers → health."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Mapping

from ..config import InstanceConfig
from ..errors import (
    BorrowerIndexError,
    CatalogBuildError,
    PriceFetchError,
)
from ..interfaces.gateway import ChainGateway
from ..models import InstanceState
from ..store import SnapshotStore
from .borrowers import BorrowerIndexer
from .catalog import AssetCatalogBuilder
from .health import compute_all
from .prices import PriceRefresher

logger = logging.getLogger(__name__)


class SyncEngine:
    """Bring one instance's snapshot up to date with the ledger.

    Sync passes for the same instance are serialized by a per-instance lock,
    so the debounce check and the timestamp update cannot interleave with a
    concurrent trigger.
    """

    def __init__(
        self,
        store: SnapshotStore,
        gateways: Mapping[str, ChainGateway],
        max_concurrent_lookups: int = 8,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._gateways = gateways
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._catalog_builder = AssetCatalogBuilder()
        self._price_refresher = PriceRefresher()
        self._indexer = BorrowerIndexer(max_concurrent_lookups)

    async def sync(self, instance: InstanceConfig) -> bool:
        """Run one sync pass. Returns True if a new state was committed.

        Never raises: failures are logged and the previous state stays.
        """
        instance_id = instance.instance_id
        lock = self._locks.setdefault(instance_id, asyncio.Lock())

        async with lock:
            state = self._store.get(instance_id) or InstanceState(block=instance.start_block)

            now = self._clock()
            if now - state.last_sync < instance.debounce_seconds:
                logger.debug(
                    "%s synced %.0fs ago, skipping", instance_id, now - state.last_sync
                )
                return False

            # stamp before any network call
            state = replace(state, last_sync=now)
            self._store.commit(instance_id, state)

            try:
                new_state = await self._run(instance, state)
            except CatalogBuildError as e:
                logger.error("%s: %s; keeping previous catalog", instance_id, e)
                return False
            except PriceFetchError as e:
                logger.error("%s: %s; keeping previous prices", instance_id, e)
                return False
            except BorrowerIndexError as e:
                logger.error("%s: %s; block cursor unchanged", instance_id, e)
                return False
            except Exception as e:
                logger.exception("%s: sync failed: %s", instance_id, e)
                return False

            self._store.commit(instance_id, new_state)
            logger.info(
                "%s synced to block %d: %d borrowers",
                instance_id,
                new_state.block,
                len(new_state.borrowers),
            )
            return True

    async def _run(self, instance: InstanceConfig, state: InstanceState) -> InstanceState:
        gateway = self._gateways[instance.instance_id]

        catalog = state.catalog
        num_collaterals = state.num_collaterals
        on_chain_count = await gateway.get_num_assets()
        if catalog is None or on_chain_count != num_collaterals:
            logger.info(
                "%s: asset count %d (was %d), rebuilding catalog",
                instance.instance_id,
                on_chain_count,
                num_collaterals,
            )
            catalog = await self._catalog_builder.build(instance, gateway)
            num_collaterals = len(catalog.collaterals)

        catalog = await self._price_refresher.refresh(gateway, catalog)

        block, borrowers = await self._indexer.index(
            instance, gateway, state.block, catalog, state.borrowers
        )

        borrowers = compute_all(catalog, borrowers)

        return replace(
            state,
            block=block,
            catalog=catalog,
            num_collaterals=num_collaterals,
            borrowers=borrowers,
        )
