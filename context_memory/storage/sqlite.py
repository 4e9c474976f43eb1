"""SQLiteBackend: primary durable backend using stdlib sqlite3."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from ..core.backend import EntryBackend, PersistenceError
from ..types import MemoryCategory, MemoryEntry, MemoryScope
from .helpers import dt_to_str, str_to_dt

T = TypeVar("T")

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS memory_entries (
    owner TEXT NOT NULL,
    id TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    content TEXT NOT NULL DEFAULT '',
    category TEXT NOT NULL,
    scope TEXT NOT NULL,
    tags_json TEXT NOT NULL DEFAULT '[]',
    token_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    last_accessed_at TEXT,
    access_count INTEGER NOT NULL DEFAULT 0,
    pinned INTEGER NOT NULL DEFAULT 0,
    source_type TEXT,
    source_ref TEXT,
    PRIMARY KEY (owner, id)
);

CREATE INDEX IF NOT EXISTS idx_memory_entries_owner ON memory_entries(owner);
"""

COLUMNS = (
    "owner", "id", "title", "content", "category", "scope", "tags_json",
    "token_count", "created_at", "updated_at", "last_accessed_at",
    "access_count", "pinned", "source_type", "source_ref",
)

# Upsert keeps the original rowid, so ORDER BY rowid is insertion order.
UPSERT_SQL = (
    f"INSERT INTO memory_entries ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join('?' * len(COLUMNS))}) "
    "ON CONFLICT(owner, id) DO UPDATE SET "
    + ", ".join(f"{c} = excluded.{c}" for c in COLUMNS[2:])
)


def _row_to_entry(row: sqlite3.Row) -> MemoryEntry:
    return MemoryEntry(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        category=MemoryCategory(row["category"]),
        scope=MemoryScope(row["scope"]),
        tags=json.loads(row["tags_json"]),
        token_count=row["token_count"],
        created_at=str_to_dt(row["created_at"]),
        updated_at=str_to_dt(row["updated_at"]),
        last_accessed_at=str_to_dt(row["last_accessed_at"]) if row["last_accessed_at"] else None,
        access_count=row["access_count"],
        pinned=bool(row["pinned"]),
        source_type=row["source_type"],
        source_ref=row["source_ref"],
    )


class SQLiteBackend(EntryBackend):
    """One owner's entries in a shared SQLite file.

    Each call opens its own connection, runs one transaction in a worker
    thread, and closes the connection on every exit path.
    """

    def __init__(self, db_path: str | Path, owner: str) -> None:
        self.db_path = Path(db_path)
        self.owner = owner
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self._connect() as conn:
                conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot initialise {self.db_path}: {e}") from e

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn
        finally:
            conn.close()

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        def work() -> T:
            with self._connect() as conn:
                return fn(conn)

        try:
            return await asyncio.to_thread(work)
        except sqlite3.Error as e:
            raise PersistenceError(f"SQLite call failed for {self.owner}: {e}") from e

    def _params(self, entry: MemoryEntry) -> tuple:
        return (
            self.owner,
            entry.id,
            entry.title,
            entry.content,
            entry.category.value,
            entry.scope.value,
            json.dumps(entry.tags),
            entry.token_count,
            dt_to_str(entry.created_at),
            dt_to_str(entry.updated_at),
            dt_to_str(entry.last_accessed_at) if entry.last_accessed_at else None,
            entry.access_count,
            int(entry.pinned),
            entry.source_type,
            entry.source_ref,
        )

    async def get_all(self) -> list[MemoryEntry]:
        def fn(conn: sqlite3.Connection) -> list[MemoryEntry]:
            rows = conn.execute(
                "SELECT * FROM memory_entries WHERE owner = ? ORDER BY rowid",
                (self.owner,),
            ).fetchall()
            return [_row_to_entry(r) for r in rows]

        return await self._run(fn)

    async def get(self, entry_id: str) -> MemoryEntry | None:
        def fn(conn: sqlite3.Connection) -> MemoryEntry | None:
            row = conn.execute(
                "SELECT * FROM memory_entries WHERE owner = ? AND id = ?",
                (self.owner, entry_id),
            ).fetchone()
            return _row_to_entry(row) if row else None

        return await self._run(fn)

    async def put(self, entry: MemoryEntry) -> None:
        params = self._params(entry)
        await self._run(lambda conn: conn.execute(UPSERT_SQL, params))

    async def delete(self, entry_id: str) -> None:
        await self._run(lambda conn: conn.execute(
            "DELETE FROM memory_entries WHERE owner = ? AND id = ?",
            (self.owner, entry_id),
        ))

    async def clear(self) -> None:
        await self._run(lambda conn: conn.execute(
            "DELETE FROM memory_entries WHERE owner = ?", (self.owner,),
        ))

    async def import_all(self, entries: list[MemoryEntry]) -> None:
        params = [self._params(e) for e in entries]

        def fn(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM memory_entries WHERE owner = ?", (self.owner,))
            conn.executemany(UPSERT_SQL, params)

        await self._run(fn)
