"""Keyword recall and context-window assembly over a snapshot of entries."""

from __future__ import annotations

import math
import re
from collections import Counter
from datetime import datetime

from ..token_counter import count_tokens
from ..types import MemoryEntry
from .lifecycle import importance_score

_WORD_RE = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def _entry_terms(entry: MemoryEntry) -> list[str]:
    return tokenize(" ".join([entry.title, entry.content, *entry.tags]))


def search(entries: list[MemoryEntry], query: str, limit: int = 5) -> list[MemoryEntry]:
    """Rank entries by TF-IDF against *query*. Non-matching entries are dropped.

    IDF is log(1 + N / df) so rare terms outweigh common ones.
    """
    query_terms = set(tokenize(query))
    if not query_terms or not entries:
        return []

    docs = [Counter(_entry_terms(e)) for e in entries]
    n = len(docs)
    df = {t: sum(1 for d in docs if t in d) for t in query_terms}
    idf = {t: math.log(1 + n / df[t]) for t in query_terms if df[t]}

    scored: list[tuple[float, int, MemoryEntry]] = []
    for i, (entry, doc) in enumerate(zip(entries, docs)):
        length = sum(doc.values()) or 1
        score = sum(doc[t] / length * w for t, w in idf.items() if t in doc)
        if score > 0:
            scored.append((score, i, entry))

    scored.sort(key=lambda x: (-x[0], x[1]))
    return [e for _, _, e in scored[:limit]]


def format_entry(entry: MemoryEntry) -> str:
    return f"[{entry.category.value}] {entry.title}: {entry.content}"


def build_context_window(
    entries: list[MemoryEntry],
    max_tokens: int,
    now: datetime | None = None,
) -> str:
    """Pack entries into a newline-joined block within *max_tokens*.

    Pinned entries go first, then by importance. Packing stops at the
    first entry that does not fit.
    """
    ranked = sorted(
        entries,
        key=lambda e: (not e.pinned, -importance_score(e, now)),
    )
    lines: list[str] = []
    used = 0
    for entry in ranked:
        line = format_entry(entry)
        cost = count_tokens(line)
        if used + cost > max_tokens:
            break
        lines.append(line)
        used += cost
    return "\n".join(lines)
