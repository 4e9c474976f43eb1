"""Token counting utilities."""

from __future__ import annotations

import math

TOKEN_BUDGET = 1_000_000


def count_tokens(text: str) -> int:
    """Budget cost of a piece of text: ~4 chars per token, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def format_token_count(n: int) -> str:
    """Abbreviate a token count for display (1.2M, 3.4K, 999)."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(n)
