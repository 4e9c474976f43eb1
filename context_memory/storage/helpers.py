"""Shared helpers for storage backends and the export/import interchange format."""

from __future__ import annotations

from datetime import datetime, timezone

from ..types import MemoryCategory, MemoryEntry, MemoryScope


def dt_to_str(dt: datetime) -> str:
    return dt.isoformat()


def str_to_dt(s: str) -> datetime:
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def entry_to_dict(entry: MemoryEntry) -> dict:
    """Serialize an entry using the interchange field names."""
    return {
        "id": entry.id,
        "title": entry.title,
        "content": entry.content,
        "category": entry.category.value,
        "tags": list(entry.tags),
        "scope": entry.scope.value,
        "tokenCount": entry.token_count,
        "createdAt": dt_to_str(entry.created_at),
        "updatedAt": dt_to_str(entry.updated_at),
        "lastAccessedAt": dt_to_str(entry.last_accessed_at) if entry.last_accessed_at else None,
        "accessCount": entry.access_count,
        "pinned": entry.pinned,
        "sourceType": entry.source_type,
        "sourceRef": entry.source_ref,
    }


def entry_from_dict(raw: dict) -> MemoryEntry:
    """Parse an interchange record. Missing optional fields take their defaults."""
    last_accessed = raw.get("lastAccessedAt")
    return MemoryEntry(
        id=raw["id"],
        title=raw.get("title", ""),
        content=raw.get("content", ""),
        category=MemoryCategory(raw["category"]),
        scope=MemoryScope(raw.get("scope", MemoryScope.WORKSPACE.value)),
        tags=list(raw.get("tags") or []),
        token_count=int(raw["tokenCount"]),
        created_at=str_to_dt(raw["createdAt"]),
        updated_at=str_to_dt(raw.get("updatedAt", raw["createdAt"])),
        last_accessed_at=str_to_dt(last_accessed) if last_accessed else None,
        access_count=int(raw.get("accessCount", 0)),
        pinned=bool(raw.get("pinned", False)),
        source_type=raw.get("sourceType"),
        source_ref=raw.get("sourceRef"),
    )
