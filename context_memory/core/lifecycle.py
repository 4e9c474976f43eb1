"""Lifecycle policy: importance scoring, stale/expired detection, pruning.

The policy functions are pure and operate over a snapshot. LifecycleManager
applies them to a live owner store and issues deletions through it. Sweeps
are best-effort: a failed deletion is recorded and the sweep moves on, and
deletions already issued are never rolled back. Re-running a sweep is safe.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Iterable

from ..types import LifecycleConfig, MemoryCategory, MemoryEntry, PruneResult
from .backend import PersistenceError

if TYPE_CHECKING:
    from .entry_store import EntryStore
    from .registry import MemoryRegistry

logger = logging.getLogger(__name__)

RECENT_ACCESS_DAYS = 7
PINNED_BONUS = 100
ACCESS_WEIGHT = 10
CATEGORY_BONUS = 20
HIGH_VALUE_CATEGORIES = frozenset({MemoryCategory.DECISIONS, MemoryCategory.WORKFLOWS})


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def importance_score(entry: MemoryEntry, now: datetime | None = None) -> int:
    """Rank an entry for capacity eviction. Higher means keep longer."""
    score = 1
    if entry.pinned:
        score += PINNED_BONUS
    if entry.last_accessed_at is not None:
        if entry.last_accessed_at >= _now(now) - timedelta(days=RECENT_ACCESS_DAYS):
            score += entry.access_count * ACCESS_WEIGHT
    if entry.category in HIGH_VALUE_CATEGORIES:
        score += CATEGORY_BONUS
    return score


def identify_stale(
    entries: Iterable[MemoryEntry],
    stale_days: int,
    now: datetime | None = None,
) -> list[MemoryEntry]:
    """Unpinned entries not accessed within *stale_days* (or never)."""
    threshold = _now(now) - timedelta(days=stale_days)
    return [
        e for e in entries
        if not e.pinned and (e.last_accessed_at is None or e.last_accessed_at < threshold)
    ]


def identify_expired(
    entries: Iterable[MemoryEntry],
    ttl_days: int,
    now: datetime | None = None,
) -> list[MemoryEntry]:
    """Unpinned entries created more than *ttl_days* ago."""
    threshold = _now(now) - timedelta(days=ttl_days)
    return [e for e in entries if not e.pinned and e.created_at < threshold]


def rank_for_eviction(
    entries: Iterable[MemoryEntry],
    now: datetime | None = None,
) -> list[MemoryEntry]:
    """Unpinned entries, least important first.

    The sort is stable, so equal scores keep snapshot order.
    """
    now = _now(now)
    return sorted(
        (e for e in entries if not e.pinned),
        key=lambda e: importance_score(e, now),
    )


class LifecycleManager:
    """Prune owner stores down to their TTL, staleness and capacity limits.

    When *now* is omitted, time comes from the owner store's clock.
    """

    def __init__(
        self,
        registry: MemoryRegistry,
        config: LifecycleConfig | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or LifecycleConfig()

    async def prune_owner(
        self,
        owner: str,
        config: LifecycleConfig | None = None,
        now: datetime | None = None,
    ) -> PruneResult:
        """Expired, then stale, then capacity overflow. For capacity-bounded owners."""
        config = config or self.config
        store = self.registry.get(owner)
        await store.hydrate()
        now = now or store.now()
        result = await self._prune_ttl(store, config, now)

        # Walk past failed deletions until the count fits or candidates run out.
        for entry in rank_for_eviction(store.snapshot(), now):
            if len(store) <= config.max_entries_per_owner:
                break
            await self._delete_one(store, entry, result, phase="capacity")

        logger.info(
            "Pruned %s: %d deleted, %d tokens freed, %d failed",
            owner, result.deleted_count, result.freed_tokens, len(result.failed_ids),
        )
        return result

    async def prune_unbounded(
        self,
        owner: str | None = None,
        config: LifecycleConfig | None = None,
        now: datetime | None = None,
    ) -> PruneResult:
        """Expired and stale phases only. Defaults to the workspace collection."""
        config = config or self.config
        store = self.registry.get(owner) if owner else self.registry.workspace()
        await store.hydrate()
        result = await self._prune_ttl(store, config, now or store.now())
        logger.info(
            "Pruned %s: %d deleted, %d tokens freed, %d failed",
            store.owner, result.deleted_count, result.freed_tokens, len(result.failed_ids),
        )
        return result

    async def _prune_ttl(
        self,
        store: EntryStore,
        config: LifecycleConfig,
        now: datetime,
    ) -> PruneResult:
        result = PruneResult()
        for entry in identify_expired(store.snapshot(), config.default_ttl_days, now):
            await self._delete_one(store, entry, result, phase="expired")

        for entry in identify_stale(store.snapshot(), config.stale_days, now):
            await self._delete_one(store, entry, result, phase="stale")
        return result

    async def _delete_one(
        self,
        store: EntryStore,
        entry: MemoryEntry,
        result: PruneResult,
        phase: str,
    ) -> None:
        if entry.id in result.failed_ids:
            return
        try:
            deleted = await store.delete(entry.id)
        except PersistenceError as e:
            logger.warning("Failed to delete %s (%s phase): %s", entry.id, phase, e)
            result.failed_ids.append(entry.id)
            return
        if deleted:
            result.record(entry)
