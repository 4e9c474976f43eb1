from __future__ import annotations

from typing import Callable

from ..core.backend import EntryBackend
from ..types import StorageConfig
from .filesystem import FilesystemBackend
from .memory import InMemoryBackend
from .sqlite import SQLiteBackend

__all__ = ["FilesystemBackend", "InMemoryBackend", "SQLiteBackend", "create_backend_factory"]

BACKENDS = ("sqlite", "filesystem", "memory")


def create_backend_factory(config: StorageConfig) -> Callable[[str], EntryBackend]:
    """Return an owner -> backend factory for the configured backend."""
    if config.backend == "sqlite":
        return lambda owner: SQLiteBackend(db_path=config.sqlite_path, owner=owner)
    if config.backend == "filesystem":
        return lambda owner: FilesystemBackend(root=config.root, owner=owner)
    if config.backend == "memory":
        return lambda owner: InMemoryBackend()
    raise ValueError(f"Unknown storage backend: {config.backend}")
