"""Tests for SQLite storage backend."""

import dataclasses
import sqlite3

import pytest

from conftest import NOW, make_entry

from context_memory.core.backend import PersistenceError
from context_memory.core.entry_store import EntryStore
from context_memory.storage.sqlite import SQLiteBackend
from context_memory.types import MemoryCategory, MemoryScope


@pytest.fixture
def backend(tmp_sqlite_db):
    return SQLiteBackend(db_path=tmp_sqlite_db, owner="workspace")


class TestSQLiteBackend:
    @pytest.mark.asyncio
    async def test_put_and_get(self, backend):
        entry = make_entry("e1", "hello world", tags=["a", "b"])
        entry.source_type = "manual"
        await backend.put(entry)
        assert await backend.get("e1") == entry

    @pytest.mark.asyncio
    async def test_get_missing(self, backend):
        assert await backend.get("nope") is None

    @pytest.mark.asyncio
    async def test_all_fields_round_trip(self, backend):
        entry = dataclasses.replace(
            make_entry("e1", "line one\nline two", category=MemoryCategory.PEOPLE),
            scope=MemoryScope.TEAM,
            last_accessed_at=None,
            access_count=7,
            pinned=True,
            source_type="template",
            source_ref="tpl-team-member",
        )
        await backend.put(entry)
        [loaded] = await backend.get_all()
        assert loaded == entry
        assert loaded.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_order_survives_update(self, backend):
        for i in range(3):
            await backend.put(make_entry(f"e{i}"))
        await backend.put(dataclasses.replace(make_entry("e0"), title="changed"))
        entries = await backend.get_all()
        assert [e.id for e in entries] == ["e0", "e1", "e2"]
        assert entries[0].title == "changed"

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, backend):
        await backend.put(make_entry("e1"))
        await backend.delete("e1")
        await backend.delete("e1")
        assert await backend.get_all() == []

    @pytest.mark.asyncio
    async def test_owners_share_file_not_rows(self, tmp_sqlite_db):
        ws = SQLiteBackend(tmp_sqlite_db, "workspace")
        agent = SQLiteBackend(tmp_sqlite_db, "agents/a")
        await ws.put(make_entry("same-id", "workspace copy"))
        await agent.put(make_entry("same-id", "agent copy"))
        await agent.clear()

        assert await agent.get_all() == []
        [kept] = await ws.get_all()
        assert kept.content == "workspace copy"

    @pytest.mark.asyncio
    async def test_import_all_replaces(self, backend):
        await backend.put(make_entry("old"))
        await backend.import_all([make_entry("n1"), make_entry("n2")])
        assert [e.id for e in await backend.get_all()] == ["n1", "n2"]

    @pytest.mark.asyncio
    async def test_export_all(self, backend):
        await backend.put(make_entry("e1"))
        assert [e.id for e in await backend.export_all()] == ["e1"]

    @pytest.mark.asyncio
    async def test_sqlite_errors_become_persistence_errors(self, backend, tmp_sqlite_db):
        conn = sqlite3.connect(str(tmp_sqlite_db))
        conn.execute("DROP TABLE memory_entries")
        conn.commit()
        conn.close()
        with pytest.raises(PersistenceError):
            await backend.get_all()


class TestStoreOnSQLite:
    @pytest.mark.asyncio
    async def test_store_survives_restart(self, tmp_sqlite_db, clock):
        store = EntryStore("workspace", SQLiteBackend(tmp_sqlite_db, "workspace"), clock=clock)
        await store.hydrate()
        a = await store.insert("A", "alpha", "facts")
        b = await store.insert("B", "beta", "decisions", pinned=True)
        await store.delete(a.id)

        reopened = EntryStore("workspace", SQLiteBackend(tmp_sqlite_db, "workspace"), clock=clock)
        await reopened.hydrate()
        assert reopened.snapshot() == [b]
        assert reopened.pinned_ids == {b.id}
        assert reopened.total_tokens == b.token_count
        assert reopened.snapshot()[0].created_at == NOW
