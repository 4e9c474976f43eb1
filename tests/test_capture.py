"""Tests for the auto-capture worker."""

import asyncio

import pytest

from conftest import FailingBackend

from context_memory.capture import CaptureCandidate, CaptureWorker
from context_memory.core.entry_store import EntryStore
from context_memory.storage.memory import InMemoryBackend


def _candidate(title, content="captured content"):
    return CaptureCandidate(title=title, content=content, category="facts", tags=["auto"])


@pytest.mark.asyncio
async def test_drain_inserts_candidates(store):
    queue = asyncio.Queue()
    queue.put_nowait(_candidate("first"))
    queue.put_nowait(_candidate("second"))

    report = await CaptureWorker(store, queue).drain()

    assert report.accepted == 2
    assert [e.title for e in store.snapshot()] == ["first", "second"]
    assert all(e.source_type == "auto-capture" for e in store.snapshot())
    assert queue.empty()


@pytest.mark.asyncio
async def test_budget_rejections_are_counted(clock):
    store = EntryStore("workspace", InMemoryBackend(), token_budget=3, clock=clock)
    queue = asyncio.Queue()
    queue.put_nowait(_candidate("fits", "12345678"))
    queue.put_nowait(_candidate("too big", "x" * 100))
    queue.put_nowait(_candidate("also fits", "1234"))

    report = await CaptureWorker(store, queue).drain()

    assert (report.accepted, report.rejected, report.failed) == (2, 1, 0)
    assert store.total_tokens == 3


@pytest.mark.asyncio
async def test_persistence_failures_are_counted(clock):
    backend = FailingBackend()
    backend.fail_methods.add("put")
    store = EntryStore("workspace", backend, clock=clock)
    queue = asyncio.Queue()
    queue.put_nowait(_candidate("lost"))

    report = await CaptureWorker(store, queue).drain()

    assert report.failed == 1
    assert len(store) == 0


@pytest.mark.asyncio
async def test_run_until_shutdown(store):
    queue = asyncio.Queue()
    shutdown = asyncio.Event()
    worker = CaptureWorker(store, queue, source_type="chat-listener")
    task = asyncio.create_task(worker.run(shutdown))

    await queue.put(_candidate("live"))
    await asyncio.wait_for(queue.join(), timeout=2)
    shutdown.set()
    await asyncio.wait_for(task, timeout=2)

    [entry] = store.snapshot()
    assert entry.title == "live"
    assert entry.source_type == "chat-listener"
    assert worker.report.accepted == 1
