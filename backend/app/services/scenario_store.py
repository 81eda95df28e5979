"""
In-memory scenario store for the HTTP service.

Each scenario is replaced as a whole.  Mutations go through a per-scenario
``asyncio.Lock`` so read, rebalance and write for one scenario never
interleave; concurrent writers to the same id queue up behind the lock.
Reads return the current snapshot without locking.

Capacity is bounded; when full, the least recently written scenario is
evicted.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from app.allocation_engine.scenario import default_scenario
from app.config import settings
from app.models.schemas import Scenario

logger = logging.getLogger(__name__)


class ScenarioStore:
    def __init__(self, max_scenarios: int = 500):
        self.max_scenarios = max_scenarios
        self._scenarios: OrderedDict[str, Scenario] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}  # holders + waiters per id

    def __len__(self) -> int:
        return len(self._scenarios)

    def __contains__(self, scenario_id: str) -> bool:
        return scenario_id in self._scenarios

    def get(self, scenario_id: str) -> Optional[Scenario]:
        return self._scenarios.get(scenario_id)

    def put(self, scenario: Scenario) -> Scenario:
        """Store *scenario* under its id, replacing any previous version."""
        self._scenarios[scenario.id] = scenario
        self._scenarios.move_to_end(scenario.id)
        while len(self._scenarios) > self.max_scenarios:
            evicted_id, _ = self._scenarios.popitem(last=False)
            self._drop_idle_lock(evicted_id)
            logger.info("Evicted scenario %s (store full)", evicted_id)
        return scenario

    def create(self, scenario: Optional[Scenario] = None) -> Scenario:
        scenario = scenario or default_scenario()
        logger.info("Created scenario %s", scenario.id)
        return self.put(scenario)

    def delete(self, scenario_id: str) -> bool:
        """Remove a scenario.  Its lock stays until the last holder exits."""
        removed = self._scenarios.pop(scenario_id, None) is not None
        self._drop_idle_lock(scenario_id)
        return removed

    def _drop_idle_lock(self, scenario_id: str) -> None:
        if scenario_id in self._scenarios or self._lock_users.get(scenario_id, 0):
            return
        self._locks.pop(scenario_id, None)
        self._lock_users.pop(scenario_id, None)

    @asynccontextmanager
    async def locked(self, scenario_id: str) -> AsyncIterator[None]:
        """Hold the single-writer lock for *scenario_id*.

        Every holder and waiter for an id shares one lock object; the
        entry is dropped once nobody uses it and the id is not stored.
        """
        lock = self._locks.setdefault(scenario_id, asyncio.Lock())
        self._lock_users[scenario_id] = self._lock_users.get(scenario_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[scenario_id] -= 1
            self._drop_idle_lock(scenario_id)

    async def update(
        self,
        scenario_id: str,
        fn: Callable[[Scenario], Scenario],
    ) -> Optional[Scenario]:
        """Apply *fn* to the stored scenario under its lock.

        Returns the new scenario, or None if the id is unknown.
        """
        if scenario_id not in self._scenarios:
            return None
        async with self.locked(scenario_id):
            current = self._scenarios.get(scenario_id)
            if current is None:
                return None
            updated = fn(current)
            # fn may hand back a scenario with a different id (reset, import)
            if updated.id != scenario_id:
                updated = updated.model_copy(update={"id": scenario_id})
            return self.put(updated)


scenario_store = ScenarioStore(max_scenarios=settings.max_scenarios)
