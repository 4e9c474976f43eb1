"""Shared fixtures for context-memory tests."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from context_memory.core.backend import PersistenceError
from context_memory.core.entry_store import EntryStore
from context_memory.core.registry import MemoryRegistry
from context_memory.storage.memory import InMemoryBackend
from context_memory.token_counter import count_tokens
from context_memory.types import MemoryCategory, MemoryEntry, MemoryScope

NOW = datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Deterministic clock for stores; advance() moves it forward."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FailingBackend(InMemoryBackend):
    """In-memory backend whose calls can be made to fail.

    ``fail_methods`` fails every call to the named methods; ``fail_ids``
    fails put/delete only for those entry ids.
    """

    def __init__(self, entries=None) -> None:
        super().__init__(entries)
        self.fail_methods: set[str] = set()
        self.fail_ids: set[str] = set()

    def _check(self, method: str, entry_id: str | None = None) -> None:
        if method in self.fail_methods or (entry_id is not None and entry_id in self.fail_ids):
            raise PersistenceError(f"simulated {method} failure")

    async def get_all(self):
        self._check("get_all")
        return await super().get_all()

    async def put(self, entry):
        self._check("put", entry.id)
        await super().put(entry)

    async def delete(self, entry_id):
        self._check("delete", entry_id)
        await super().delete(entry_id)

    async def clear(self):
        self._check("clear")
        await super().clear()


def make_entry(
    entry_id: str,
    content: str = "test content",
    category: MemoryCategory = MemoryCategory.FACTS,
    created_at: datetime | None = None,
    last_accessed_at: datetime | None = NOW,
    access_count: int = 0,
    pinned: bool = False,
    tags: list[str] | None = None,
    title: str | None = None,
) -> MemoryEntry:
    created = created_at or NOW
    return MemoryEntry(
        id=entry_id,
        title=title or f"Entry {entry_id}",
        content=content,
        category=category,
        scope=MemoryScope.WORKSPACE,
        tags=tags if tags is not None else ["test"],
        token_count=count_tokens(content),
        created_at=created,
        updated_at=created,
        last_accessed_at=last_accessed_at,
        access_count=access_count,
        pinned=pinned,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend, clock) -> EntryStore:
    return EntryStore("workspace", backend, clock=clock)


@pytest.fixture
def backends() -> dict[str, InMemoryBackend]:
    return {}


@pytest.fixture
def registry(backends, clock) -> MemoryRegistry:
    def factory(owner: str) -> InMemoryBackend:
        backends[owner] = InMemoryBackend()
        return backends[owner]

    return MemoryRegistry(factory, clock=clock)


@pytest.fixture
def tmp_store_dir():
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def tmp_sqlite_db(tmp_store_dir):
    return tmp_store_dir / "test_store.db"
