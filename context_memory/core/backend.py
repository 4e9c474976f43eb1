"""EntryBackend abstract base class: durable storage for one owner's entries."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..types import MemoryEntry


class PersistenceError(Exception):
    """A durable storage call failed. Safe to retry."""


class EntryBackend(ABC):
    """Pluggable durable store for one owner, keyed by entry id.

    Implementations must round-trip every field type exactly and raise
    PersistenceError (never a driver-specific exception) on failure.
    """

    @abstractmethod
    async def get_all(self) -> list[MemoryEntry]:
        """Load every entry, in the order they were first stored."""

    @abstractmethod
    async def get(self, entry_id: str) -> MemoryEntry | None:
        """Load one entry. None if not found."""

    @abstractmethod
    async def put(self, entry: MemoryEntry) -> None:
        """Store an entry. Upsert on id."""

    @abstractmethod
    async def delete(self, entry_id: str) -> None:
        """Delete an entry. Deleting a missing id is not an error."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every entry for this owner."""

    async def export_all(self) -> list[MemoryEntry]:
        """Bulk read for export. Defaults to get_all()."""
        return await self.get_all()

    async def import_all(self, entries: list[MemoryEntry]) -> None:
        """Replace the whole collection with *entries*."""
        await self.clear()
        for entry in entries:
            await self.put(entry)
