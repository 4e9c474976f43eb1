"""EntryStore: the canonical in-memory collection for one owner.

Every mutation performs exactly one durable backend write and only touches
the in-memory collection after that call succeeds, so a PersistenceError
leaves both sides unchanged. Mutations hydrate the store first, so budget
checks always see the persisted collection. Callers are expected to
serialize mutations for a single owner; reads work on copies.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from ..templates import get_template
from ..token_counter import TOKEN_BUDGET, count_tokens
from ..types import (
    BudgetExceeded,
    MemoryCategory,
    MemoryEntry,
    MemoryScope,
    SortOrder,
)
from .backend import EntryBackend

logger = logging.getLogger(__name__)

REMEMBER_TITLE_CHARS = 60

_CATEGORY_ORDER = {c: i for i, c in enumerate(MemoryCategory)}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntryStore:
    """Create/update/delete/list memory entries for one owner within a token budget."""

    def __init__(
        self,
        owner: str,
        backend: EntryBackend,
        *,
        token_budget: int = TOKEN_BUDGET,
        clock: Callable[[], datetime] | None = None,
        enforce_budget_on_update: bool = False,
    ) -> None:
        self.owner = owner
        self.backend = backend
        self.token_budget = token_budget
        self.enforce_budget_on_update = enforce_budget_on_update
        self._clock = clock or utc_now
        self._entries: list[MemoryEntry] = []
        self._hydrated = False
        self._hydrate_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    def now(self) -> datetime:
        """Current time from the injected clock."""
        return self._clock()

    def snapshot(self) -> list[MemoryEntry]:
        """Copy of the collection, safe to iterate while mutations happen."""
        return list(self._entries)

    def get(self, entry_id: str) -> MemoryEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def total_tokens(self) -> int:
        return sum(e.token_count for e in self._entries)

    @property
    def pinned_ids(self) -> set[str]:
        return {e.id for e in self._entries if e.pinned}

    def filter_entries(
        self,
        query: str = "",
        scope: MemoryScope | str | None = None,
        category: MemoryCategory | str | None = None,
        tags: list[str] | None = None,
        sort: SortOrder | str = SortOrder.RECENT,
    ) -> list[MemoryEntry]:
        """Filter and sort a snapshot. Tags must all be present on an entry."""
        entries = self.snapshot()
        if scope is not None:
            scope = MemoryScope(scope)
            entries = [e for e in entries if e.scope == scope]
        if category is not None:
            category = MemoryCategory(category)
            entries = [e for e in entries if e.category == category]
        if tags:
            wanted = set(tags)
            entries = [e for e in entries if wanted.issubset(e.tags)]
        if query:
            q = query.lower()
            entries = [
                e for e in entries
                if q in e.title.lower()
                or q in e.content.lower()
                or any(q in t.lower() for t in e.tags)
            ]

        sort = SortOrder(sort)
        if sort == SortOrder.RECENT:
            entries.sort(key=lambda e: e.updated_at, reverse=True)
        elif sort == SortOrder.OLDEST:
            entries.sort(key=lambda e: e.created_at)
        elif sort == SortOrder.LARGEST:
            entries.sort(key=lambda e: e.token_count, reverse=True)
        else:
            entries.sort(key=lambda e: (_CATEGORY_ORDER[e.category], e.title.lower()))
        return entries

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def hydrate(self) -> None:
        """Load the collection from the backend once per store lifetime."""
        if self._hydrated:
            return
        async with self._hydrate_lock:
            if self._hydrated:
                return
            entries = await self.backend.get_all()
            self._entries = list(entries)
            self._hydrated = True
            logger.debug("Hydrated %s with %d entries", self.owner, len(entries))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def insert(
        self,
        title: str,
        content: str,
        category: MemoryCategory | str,
        tags: list[str] | None = None,
        scope: MemoryScope | str = MemoryScope.WORKSPACE,
        *,
        pinned: bool = False,
        source_type: str | None = None,
        source_ref: str | None = None,
    ) -> MemoryEntry | BudgetExceeded:
        """Create an entry, or reject it if the owner's token budget would overflow."""
        await self.hydrate()
        token_count = count_tokens(content)
        current = self.total_tokens
        if current + token_count > self.token_budget:
            logger.warning(
                "Rejected insert for %s: %d + %d tokens exceeds budget %d",
                self.owner, current, token_count, self.token_budget,
            )
            return BudgetExceeded(
                requested_tokens=token_count,
                current_tokens=current,
                budget=self.token_budget,
            )

        now = self._clock()
        entry = MemoryEntry(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            category=MemoryCategory(category),
            scope=MemoryScope(scope),
            tags=list(tags or []),
            token_count=token_count,
            created_at=now,
            updated_at=now,
            last_accessed_at=now,
            access_count=0,
            pinned=pinned,
            source_type=source_type,
            source_ref=source_ref,
        )
        await self.backend.put(entry)
        self._entries.append(entry)
        logger.debug("Inserted %s into %s (%d tokens)", entry.id, self.owner, token_count)
        return entry

    async def insert_from_template(
        self,
        template_id: str,
        content: str,
        title: str | None = None,
        tags: list[str] | None = None,
    ) -> MemoryEntry | BudgetExceeded:
        template = get_template(template_id)
        if template is None:
            raise KeyError(f"Unknown template: {template_id}")
        return await self.insert(
            title or template.title,
            content,
            template.category,
            tags if tags is not None else list(template.tags),
            template.scope,
            source_type="template",
            source_ref=template.id,
        )

    async def remember(
        self,
        content: str,
        category: MemoryCategory | str,
        title: str | None = None,
        tags: list[str] | None = None,
    ) -> MemoryEntry | BudgetExceeded:
        """Agent-style insert; the title defaults to the start of the content."""
        if not title:
            title = content[:REMEMBER_TITLE_CHARS].strip()
        return await self.insert(
            title,
            content,
            category,
            tags,
            MemoryScope.PERSONAL,
            source_type="agent",
            source_ref=self.owner,
        )

    async def update(
        self,
        entry_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
        category: MemoryCategory | str | None = None,
        tags: list[str] | None = None,
        scope: MemoryScope | str | None = None,
    ) -> MemoryEntry | BudgetExceeded | None:
        """Apply a partial update. Returns None for an unknown id."""
        await self.hydrate()
        current = self.get(entry_id)
        if current is None:
            logger.debug("Update of unknown entry %s in %s ignored", entry_id, self.owner)
            return None

        changes: dict = {"updated_at": self._bump(current.updated_at)}
        if title is not None:
            changes["title"] = title
        if category is not None:
            changes["category"] = MemoryCategory(category)
        if tags is not None:
            changes["tags"] = list(tags)
        if scope is not None:
            changes["scope"] = MemoryScope(scope)
        if content is not None:
            changes["content"] = content
            changes["token_count"] = count_tokens(content)
            new_total = self.total_tokens - current.token_count + changes["token_count"]
            if new_total > self.token_budget:
                if self.enforce_budget_on_update:
                    logger.warning(
                        "Rejected update of %s in %s: total would be %d (budget %d)",
                        entry_id, self.owner, new_total, self.token_budget,
                    )
                    return BudgetExceeded(
                        requested_tokens=changes["token_count"],
                        current_tokens=self.total_tokens - current.token_count,
                        budget=self.token_budget,
                    )
                logger.warning(
                    "Update of %s pushes %s over budget: %d > %d",
                    entry_id, self.owner, new_total, self.token_budget,
                )

        updated = dataclasses.replace(current, **changes)
        await self._replace(updated)
        return updated

    async def record_access(self, entry_id: str) -> MemoryEntry | None:
        """Mark an entry as read: bump last_accessed_at and access_count."""
        await self.hydrate()
        current = self.get(entry_id)
        if current is None:
            return None
        updated = dataclasses.replace(
            current,
            last_accessed_at=self._bump(current.last_accessed_at),
            access_count=current.access_count + 1,
        )
        await self._replace(updated)
        return updated

    async def pin(self, entry_id: str) -> MemoryEntry | None:
        return await self._set_pinned(entry_id, True)

    async def unpin(self, entry_id: str) -> MemoryEntry | None:
        return await self._set_pinned(entry_id, False)

    async def toggle_pin(self, entry_id: str) -> MemoryEntry | None:
        await self.hydrate()
        current = self.get(entry_id)
        if current is None:
            return None
        return await self._set_pinned(entry_id, not current.pinned)

    async def delete(self, entry_id: str) -> bool:
        """Delete an entry. Returns False (and does nothing) for an unknown id."""
        await self.hydrate()
        if self.get(entry_id) is None:
            logger.debug("Delete of unknown entry %s in %s ignored", entry_id, self.owner)
            return False
        await self.backend.delete(entry_id)
        self._entries = [e for e in self._entries if e.id != entry_id]
        logger.debug("Deleted %s from %s", entry_id, self.owner)
        return True

    async def clear_all(self) -> None:
        await self.backend.clear()
        self._entries = []
        self._hydrated = True
        logger.info("Cleared all entries for %s", self.owner)

    async def export_all(self) -> list[MemoryEntry]:
        return await self.backend.export_all()

    async def import_all(self, entries: list[MemoryEntry]) -> None:
        """Replace the collection wholesale. Trusted load: no budget check."""
        entries = list(entries)
        await self.backend.import_all(entries)
        self._entries = entries
        self._hydrated = True
        logger.info("Imported %d entries into %s", len(entries), self.owner)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _bump(self, previous: datetime | None) -> datetime:
        """Current time, never earlier than *previous*."""
        now = self._clock()
        if previous is not None and previous > now:
            return previous
        return now

    async def _set_pinned(self, entry_id: str, pinned: bool) -> MemoryEntry | None:
        await self.hydrate()
        current = self.get(entry_id)
        if current is None:
            return None
        if current.pinned == pinned:
            return current
        updated = dataclasses.replace(
            current, pinned=pinned, updated_at=self._bump(current.updated_at),
        )
        await self._replace(updated)
        return updated

    async def _replace(self, updated: MemoryEntry) -> None:
        await self.backend.put(updated)
        self._entries = [updated if e.id == updated.id else e for e in self._entries]
