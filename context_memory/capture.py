"""Auto-capture consumer: insert candidate entries proposed by an event producer.

Producers put CaptureCandidate items on an asyncio.Queue at their own cadence.
The worker inserts them exactly like manual entries, budget rejection included.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .core.backend import PersistenceError
from .core.entry_store import EntryStore
from .types import BudgetExceeded, MemoryCategory, MemoryScope

logger = logging.getLogger(__name__)


@dataclass
class CaptureCandidate:
    title: str
    content: str
    category: MemoryCategory | str
    tags: list[str] = field(default_factory=list)
    scope: MemoryScope | str = MemoryScope.WORKSPACE


@dataclass
class CaptureReport:
    accepted: int = 0
    rejected: int = 0
    failed: int = 0


class CaptureWorker:
    """Drain a queue of capture candidates into one owner store."""

    def __init__(
        self,
        store: EntryStore,
        queue: asyncio.Queue[CaptureCandidate],
        source_type: str = "auto-capture",
    ) -> None:
        self.store = store
        self.queue = queue
        self.source_type = source_type
        self.report = CaptureReport()

    async def run(self, shutdown_event: asyncio.Event | None = None) -> None:
        """Main loop: wait for candidates until *shutdown_event* is set."""
        logger.info("CaptureWorker started for %s", self.store.owner)
        await self.store.hydrate()
        while not (shutdown_event and shutdown_event.is_set()):
            try:
                candidate = await asyncio.wait_for(self.queue.get(), timeout=0.5)
            except asyncio.TimeoutError:
                continue
            try:
                await self._capture(candidate)
            finally:
                self.queue.task_done()
        logger.info("CaptureWorker stopped.")

    async def drain(self) -> CaptureReport:
        """Process everything currently queued and return the running report."""
        await self.store.hydrate()
        while not self.queue.empty():
            candidate = self.queue.get_nowait()
            try:
                await self._capture(candidate)
            finally:
                self.queue.task_done()
        return self.report

    async def _capture(self, candidate: CaptureCandidate) -> None:
        try:
            result = await self.store.insert(
                candidate.title,
                candidate.content,
                candidate.category,
                candidate.tags,
                candidate.scope,
                source_type=self.source_type,
            )
        except PersistenceError as e:
            self.report.failed += 1
            logger.error("Capture of '%s' failed: %s", candidate.title, e)
            return

        if isinstance(result, BudgetExceeded):
            self.report.rejected += 1
            logger.warning(
                "Capture of '%s' rejected: needs %d tokens, %d available",
                candidate.title, result.requested_tokens, result.available,
            )
        else:
            self.report.accepted += 1
