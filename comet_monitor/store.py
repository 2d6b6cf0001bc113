"""In-memory snapshot store, keyed by instance id."""
from __future__ import annotations

import copy
import logging
from typing import Any

from .errors import QueryError
from .models import InstanceState

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Sole owner of every InstanceState.

    Writers replace an instance's state with a single assignment; readers
    get deep copies, so a reader never sees a half-written sync.
    """

    def __init__(self) -> None:
        self._states: dict[str, InstanceState] = {}

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._states

    def instance_ids(self) -> list[str]:
        return list(self._states)

    def get(self, instance_id: str) -> InstanceState | None:
        """Live state for the sync engine. Never hand this to readers."""
        return self._states.get(instance_id)

    def commit(self, instance_id: str, state: InstanceState) -> None:
        self._states[instance_id] = state

    def snapshot(self, instance_id: str) -> InstanceState:
        """Point-in-time deep copy of an instance's state.

        Raises:
            QueryError: the instance has never been synchronized.
        """
        state = self._states.get(instance_id)
        if state is None:
            raise QueryError(f"Unknown instance: {instance_id}")
        return copy.deepcopy(state)

    def export(self, instance_id: str) -> dict[str, Any]:
        """JSON-ready snapshot with borrowers as a list.

        Borrowers are sorted by percent-to-liquidation, highest first;
        equal values keep their population order.

        Raises:
            QueryError: unknown instance or the state could not be exported.
        """
        state = self.snapshot(instance_id)
        try:
            borrowers = sorted(
                state.borrowers.values(),
                key=lambda b: b.percent_to_liquidation,
                reverse=True,
            )
            return {
                "block": state.block,
                "last_sync": state.last_sync,
                "num_collaterals": state.num_collaterals,
                "assets": state.catalog.to_dict() if state.catalog else {},
                "borrowers": [b.to_dict() for b in borrowers],
            }
        except Exception as e:
            logger.error("Export of %s failed: %s", instance_id, e)
            raise QueryError(f"Snapshot export failed for {instance_id}") from e
