"""MemoryRegistry: one independently addressable EntryStore per owner key."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..token_counter import TOKEN_BUDGET
from ..types import BudgetExceeded, MemoryEntry, MemoryScope
from .backend import EntryBackend
from .entry_store import EntryStore
from .recall import search

logger = logging.getLogger(__name__)

WORKSPACE_OWNER = "workspace"
AGENT_PREFIX = "agents/"


def agent_owner(agent_id: str) -> str:
    """Owner key for an agent's private collection."""
    return f"{AGENT_PREFIX}{agent_id}"


class MemoryRegistry:
    """Create and hand out owner stores. Owners never share a budget."""

    def __init__(
        self,
        backend_factory: Callable[[str], EntryBackend],
        *,
        token_budget: int = TOKEN_BUDGET,
        clock: Callable[[], datetime] | None = None,
        enforce_budget_on_update: bool = False,
    ) -> None:
        self._backend_factory = backend_factory
        self._token_budget = token_budget
        self._clock = clock
        self._enforce_budget_on_update = enforce_budget_on_update
        self._stores: dict[str, EntryStore] = {}

    def get(self, owner: str) -> EntryStore:
        store = self._stores.get(owner)
        if store is None:
            store = EntryStore(
                owner,
                self._backend_factory(owner),
                token_budget=self._token_budget,
                clock=self._clock,
                enforce_budget_on_update=self._enforce_budget_on_update,
            )
            self._stores[owner] = store
        return store

    def workspace(self) -> EntryStore:
        return self.get(WORKSPACE_OWNER)

    def agent(self, agent_id: str) -> EntryStore:
        return self.get(agent_owner(agent_id))

    def owners(self) -> list[str]:
        return list(self._stores)

    async def clear_agent(self, agent_id: str) -> None:
        await self.agent(agent_id).clear_all()

    async def share_insight(
        self,
        agent_id: str,
        entry_id: str,
    ) -> MemoryEntry | BudgetExceeded | None:
        """Copy an agent's entry into the workspace collection."""
        source = self.agent(agent_id)
        await source.hydrate()
        entry = source.get(entry_id)
        if entry is None:
            return None
        workspace = self.workspace()
        await workspace.hydrate()
        return await workspace.insert(
            entry.title,
            entry.content,
            entry.category,
            entry.tags,
            MemoryScope.WORKSPACE,
            source_type="agent",
            source_ref=f"{source.owner}/{entry.id}",
        )

    async def recall(self, agent_id: str, query: str, limit: int = 5) -> list[MemoryEntry]:
        """Search an agent's entries plus insights shared into the workspace."""
        store = self.agent(agent_id)
        workspace = self.workspace()
        await store.hydrate()
        await workspace.hydrate()
        shared = [e for e in workspace.snapshot() if e.source_type == "agent"]
        return search(store.snapshot() + shared, query, limit)
