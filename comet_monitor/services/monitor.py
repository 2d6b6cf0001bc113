"""Monitoring orchestration — periodic sync of every configured instance."""
from __future__ import annotations

import asyncio
import logging

from aiohttp import web

from ..api import create_app
from ..chains.evm import EvmClient
from ..config import AppConfig
from ..interfaces.gateway import ChainGateway
from ..protocols.comet import CometGateway
from ..store import SnapshotStore
from .sync import SyncEngine

logger = logging.getLogger(__name__)


class Monitor:
    """Owns the snapshot store and drives sync passes across instances."""

    def __init__(self, config: AppConfig, store: SnapshotStore | None = None) -> None:
        self._config = config
        self.store = store or SnapshotStore()

        # Build chain clients
        self._chain_clients: dict[str, EvmClient] = {}
        for chain_name, chain_cfg in config.chains.items():
            self._chain_clients[chain_name] = EvmClient(chain_cfg)

        # Build one gateway per instance
        self._gateways: dict[str, ChainGateway] = {}
        for instance in config.instances:
            chain_client = self._chain_clients[instance.chain]
            self._gateways[instance.instance_id] = CometGateway(chain_client, instance)

        self._engine = SyncEngine(
            self.store,
            self._gateways,
            max_concurrent_lookups=config.monitor.max_concurrent_lookups,
        )

    async def sync_all(self) -> None:
        """Sync every instance in turn. One failing instance never stops the rest."""
        for instance in self._config.instances:
            try:
                await self._engine.sync(instance)
            except Exception as e:
                logger.error("Sync of %s failed: %s", instance.instance_id, e)

    async def run_continuous(
        self, sync_interval_minutes: int | None = None, run_immediately: bool = True
    ) -> None:
        """Run the periodic sync loop forever."""
        interval = sync_interval_minutes or self._config.monitor.sync_interval_minutes
        logger.info("Starting continuous sync (every %d minutes)", interval)

        if not run_immediately:
            await asyncio.sleep(interval * 60)

        while True:
            try:
                await self.sync_all()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in sync loop: %s", e)
                await asyncio.sleep(60)

    async def serve(
        self,
        host: str | None = None,
        port: int | None = None,
        sync_interval_minutes: int | None = None,
    ) -> None:
        """Initial sync, then serve snapshots over HTTP while syncing periodically."""
        await self.sync_all()

        runner = web.AppRunner(create_app(self.store))
        await runner.setup()
        host = host or self._config.server.host
        port = port or self._config.server.port
        site = web.TCPSite(runner, host, port)
        await site.start()
        logger.info("App listening at http://%s:%d", host, port)

        try:
            await self.run_continuous(sync_interval_minutes, run_immediately=False)
        finally:
            await runner.cleanup()
