"""FilesystemBackend: one markdown file per entry, YAML frontmatter + verbatim content."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, TypeVar

import yaml

from ..core.backend import EntryBackend, PersistenceError
from ..types import MemoryEntry
from .helpers import entry_from_dict, entry_to_dict

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _entry_to_markdown(entry: MemoryEntry) -> str:
    frontmatter = entry_to_dict(entry)
    content = frontmatter.pop("content")
    lines = ["---"]
    lines.append(yaml.safe_dump(frontmatter, default_flow_style=False, sort_keys=False).strip())
    lines.append("---")
    return "\n".join(lines) + "\n" + content


def _markdown_to_entry(text: str) -> MemoryEntry | None:
    """Parse a markdown file back into a MemoryEntry. None if malformed."""
    if not text.startswith("---\n"):
        return None
    end = text.find("\n---\n", 3)
    if end == -1:
        return None

    try:
        fm = yaml.safe_load(text[4:end])
    except yaml.YAMLError:
        return None
    if not isinstance(fm, dict):
        return None

    fm["content"] = text[end + len("\n---\n"):]
    try:
        return entry_from_dict(fm)
    except (KeyError, TypeError, ValueError):
        return None


class FilesystemBackend(EntryBackend):
    """Entries for one owner under ``root/<owner>/<id>.md``."""

    def __init__(self, root: str | Path, owner: str) -> None:
        self.root = Path(root)
        self.owner = owner
        self.dir = self.root / owner

    def _path(self, entry_id: str) -> Path:
        return self.dir / f"{entry_id}.md"

    async def _run(self, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except OSError as e:
            raise PersistenceError(f"Filesystem call failed for {self.owner}: {e}") from e

    def _read(self, path: Path) -> MemoryEntry | None:
        with path.open("r", encoding="utf-8", newline="") as f:
            entry = _markdown_to_entry(f.read())
        if entry is None:
            logger.warning("Skipping malformed entry file %s", path)
        return entry

    def _write(self, entry: MemoryEntry) -> None:
        self.dir.mkdir(parents=True, exist_ok=True)
        path = self._path(entry.id)
        tmp = path.with_suffix(".md.tmp")
        with tmp.open("w", encoding="utf-8", newline="") as f:
            f.write(_entry_to_markdown(entry))
        tmp.replace(path)

    async def get_all(self) -> list[MemoryEntry]:
        def fn() -> list[MemoryEntry]:
            if not self.dir.is_dir():
                return []
            entries = [self._read(p) for p in self.dir.glob("*.md")]
            found = [e for e in entries if e is not None]
            found.sort(key=lambda e: (e.created_at, e.id))
            return found

        return await self._run(fn)

    async def get(self, entry_id: str) -> MemoryEntry | None:
        def fn() -> MemoryEntry | None:
            path = self._path(entry_id)
            if not path.is_file():
                return None
            return self._read(path)

        return await self._run(fn)

    async def put(self, entry: MemoryEntry) -> None:
        await self._run(lambda: self._write(entry))

    async def delete(self, entry_id: str) -> None:
        await self._run(lambda: self._path(entry_id).unlink(missing_ok=True))

    async def clear(self) -> None:
        def fn() -> None:
            if not self.dir.is_dir():
                return
            for path in self.dir.glob("*.md"):
                path.unlink()

        await self._run(fn)

    async def import_all(self, entries: list[MemoryEntry]) -> None:
        def fn() -> None:
            if self.dir.is_dir():
                for path in self.dir.glob("*.md"):
                    path.unlink()
            for entry in entries:
                self._write(entry)

        await self._run(fn)

