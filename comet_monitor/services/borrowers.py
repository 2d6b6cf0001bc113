"""Incremental borrower indexing from Withdraw events plus known borrowers."""
from __future__ import annotations

import asyncio
import logging

from ..config import InstanceConfig
from ..errors import AccountLookupError, BorrowerIndexError
from ..interfaces.gateway import ChainGateway
from ..models import AccountResult, AssetCatalog, Borrower, WithdrawEvent
from ..protocols.comet.parser import decode_assets_in, from_fixed

logger = logging.getLogger(__name__)


class BorrowerIndexer:
    """Rebuild an instance's borrower population without rescanning history.

    Candidates are accounts that withdrew since the last cursor plus every
    borrower already known. Each is re-checked against current on-chain
    state, so repaid accounts drop out even without emitting a Withdraw.
    """

    def __init__(self, max_concurrent_lookups: int = 8) -> None:
        self._max_concurrent = max(1, max_concurrent_lookups)

    async def index(
        self,
        instance: InstanceConfig,
        gateway: ChainGateway,
        from_block: int,
        catalog: AssetCatalog,
        previous: dict[str, Borrower],
    ) -> tuple[int, dict[str, Borrower]]:
        """Return ``(to_block, population)``.

        ``population`` replaces ``previous`` entirely. Accounts whose lookup
        failed are left out for this pass only; ``to_block`` advances
        regardless. An account whose only Withdraw falls in this range and
        whose lookup fails is therefore not picked up again unless it
        withdraws later.

        Raises:
            BorrowerIndexError: the chain head or the event log could not
                be read. Nothing is returned and the cursor should stay put.
        """
        try:
            head = await gateway.get_block_number()
            if head < from_block:
                # a lagging endpoint; the cursor never moves backwards
                logger.warning(
                    "%s: head %d is behind cursor %d, no new blocks",
                    instance.instance_id,
                    head,
                    from_block,
                )
                to_block = from_block
                events: list[WithdrawEvent] = []
            else:
                to_block = head
                events = await gateway.get_withdraw_events(from_block, to_block)
        except Exception as e:
            raise BorrowerIndexError(
                f"Event scan failed for {instance.instance_id} from block {from_block}: {e}"
            ) from e

        candidates = [event.src for event in events if event.amount > 0]
        accounts = list(dict.fromkeys([*candidates, *previous]))
        logger.info(
            "%s: blocks %d-%d, %d withdrawers, %d known borrowers, %d to check",
            instance.instance_id,
            from_block,
            to_block,
            len(set(candidates)),
            len(previous),
            len(accounts),
        )

        semaphore = asyncio.Semaphore(self._max_concurrent)
        total = len(accounts)

        async def _bounded(position: int, account: str) -> AccountResult:
            async with semaphore:
                logger.debug("Getting userBasic %d/%d: %s", position + 1, total, account)
                return await self._check_account(instance, gateway, catalog, account)

        results = await asyncio.gather(
            *(_bounded(i, account) for i, account in enumerate(accounts))
        )

        borrowers: dict[str, Borrower] = {}
        failures = 0
        for result in results:
            if not result.ok:
                failures += 1
                logger.warning("%s: %s", instance.instance_id, result.error)
            elif result.borrower is not None:
                borrowers[result.account] = result.borrower

        logger.info(
            "%s: %d borrowers at block %d (%d lookups failed)",
            instance.instance_id,
            len(borrowers),
            to_block,
            failures,
        )
        return to_block, borrowers

    async def _check_account(
        self,
        instance: InstanceConfig,
        gateway: ChainGateway,
        catalog: AssetCatalog,
        account: str,
    ) -> AccountResult:
        try:
            borrower = await self._fetch_borrower(instance, gateway, catalog, account)
        except Exception as e:
            return AccountResult(account=account, error=AccountLookupError(account, e))
        return AccountResult(account=account, borrower=borrower)

    async def _fetch_borrower(
        self,
        instance: InstanceConfig,
        gateway: ChainGateway,
        catalog: AssetCatalog,
        account: str,
    ) -> Borrower | None:
        """Current debt and collateral for ``account``, or None if it owes nothing."""
        basic = await gateway.get_user_basic(account)
        if basic.principal >= 0:
            return None

        raw_balance = await gateway.get_borrow_balance(account)
        borrow_balance = from_fixed(raw_balance, instance.base_asset.decimals)

        held = decode_assets_in(basic.assets_in, catalog.collateral_symbols)
        collaterals: dict[str, float] = {}
        # catalog order keeps the mapping deterministic
        for asset in catalog.collaterals:
            if asset.symbol not in held:
                continue
            raw = await gateway.get_collateral_balance(account, asset.address)
            collaterals[asset.symbol] = from_fixed(raw, asset.decimals)

        return Borrower(account=account, borrow_balance=borrow_balance, collaterals=collaterals)
