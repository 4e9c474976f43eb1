"""InMemoryBackend: dict-backed backend for tests and throwaway stores."""

from __future__ import annotations

import copy
from collections import Counter

from ..core.backend import EntryBackend
from ..types import MemoryEntry


class InMemoryBackend(EntryBackend):
    """Keeps entries in an insertion-ordered dict and counts calls per method."""

    def __init__(self, entries: list[MemoryEntry] | None = None) -> None:
        self._entries: dict[str, MemoryEntry] = {}
        self.calls: Counter[str] = Counter()
        for entry in entries or []:
            self._entries[entry.id] = copy.deepcopy(entry)

    async def get_all(self) -> list[MemoryEntry]:
        self.calls["get_all"] += 1
        return [copy.deepcopy(e) for e in self._entries.values()]

    async def get(self, entry_id: str) -> MemoryEntry | None:
        self.calls["get"] += 1
        entry = self._entries.get(entry_id)
        return copy.deepcopy(entry) if entry else None

    async def put(self, entry: MemoryEntry) -> None:
        self.calls["put"] += 1
        self._entries[entry.id] = copy.deepcopy(entry)

    async def delete(self, entry_id: str) -> None:
        self.calls["delete"] += 1
        self._entries.pop(entry_id, None)

    async def clear(self) -> None:
        self.calls["clear"] += 1
        self._entries.clear()

    async def import_all(self, entries: list[MemoryEntry]) -> None:
        self.calls["import_all"] += 1
        self._entries = {e.id: copy.deepcopy(e) for e in entries}
