"""Health reporting: utilization counters, recommendation tiers, insights."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from ..templates import CATEGORY_META, list_templates
from ..types import (
    CategoryStats,
    HealthConfig,
    HealthReport,
    LifecycleConfig,
    MemoryCategory,
    MemoryEntry,
    MemoryInsight,
    Recommendation,
)
from .lifecycle import identify_expired, identify_stale

if TYPE_CHECKING:
    from .registry import MemoryRegistry


def recommend(usage_pct: float, config: HealthConfig | None = None) -> Recommendation:
    """Map budget usage to a recommendation tier.

    - above pruning threshold (default 80%): pruning needed
    - above review threshold (default 50%): review recommended
    """
    config = config or HealthConfig()
    if usage_pct > config.pruning_threshold_pct:
        return Recommendation.PRUNING_NEEDED
    if usage_pct > config.review_threshold_pct:
        return Recommendation.REVIEW_RECOMMENDED
    return Recommendation.HEALTHY


def build_report(
    entries: list[MemoryEntry],
    config: LifecycleConfig | None = None,
    health: HealthConfig | None = None,
    now: datetime | None = None,
) -> HealthReport:
    """Aggregate a snapshot into a HealthReport. Never mutates."""
    config = config or LifecycleConfig()
    entries = list(entries)
    total_tokens = sum(e.token_count for e in entries)
    if config.max_total_tokens > 0:
        usage_pct = total_tokens * 100 / config.max_total_tokens
    else:
        usage_pct = 0.0

    return HealthReport(
        total_entries=len(entries),
        total_tokens=total_tokens,
        stale_count=len(identify_stale(entries, config.stale_days, now)),
        expired_count=len(identify_expired(entries, config.default_ttl_days, now)),
        pinned_count=sum(1 for e in entries if e.pinned),
        token_budget_usage_pct=usage_pct,
        recommendation=recommend(usage_pct, health),
    )


def category_stats(entries: list[MemoryEntry]) -> list[CategoryStats]:
    """Per-category entry and token counts, zero-filled, in category order."""
    stats = {c: CategoryStats(category=c) for c in MemoryCategory}
    for entry in entries:
        s = stats[entry.category]
        s.count += 1
        s.token_count += entry.token_count
    return list(stats.values())


def insights(
    entries: list[MemoryEntry],
    config: LifecycleConfig | None = None,
    now: datetime | None = None,
) -> list[MemoryInsight]:
    """Suggest templates for empty categories and flag stale entries."""
    config = config or LifecycleConfig()
    present = {e.category for e in entries}
    result: list[MemoryInsight] = []

    for meta in CATEGORY_META:
        if meta.key in present:
            continue
        templates = list_templates(meta.key)
        template = templates[0] if templates else None
        result.append(MemoryInsight(
            type="suggestion",
            title=f"Add {meta.label} memories",
            description=(
                f"You don't have any {meta.label.lower()} stored yet. "
                f"Start capturing {meta.description.lower()}."
            ),
            action_label=f"Use {template.title}" if template else None,
            template_id=template.id if template else None,
        ))

    stale = identify_stale(entries, config.stale_days, now)
    if stale:
        result.append(MemoryInsight(
            type="stale",
            title=f"{len(stale)} stale memories",
            description=(
                f"{len(stale)} entries have not been accessed in "
                f"{config.stale_days} days and will be removed by the next prune."
            ),
        ))
    return result


class HealthReporter:
    """Read-only health view over the registry's owner stores."""

    def __init__(
        self,
        registry: MemoryRegistry,
        config: LifecycleConfig | None = None,
        health: HealthConfig | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or LifecycleConfig()
        self.health = health or HealthConfig()

    async def report(
        self,
        owner: str | None = None,
        config: LifecycleConfig | None = None,
        now: datetime | None = None,
    ) -> HealthReport:
        """Report on *owner*, or on the workspace collection when omitted.

        Hydrates the store first. When *now* is omitted, time comes from
        the store's clock.
        """
        store = self.registry.get(owner) if owner else self.registry.workspace()
        await store.hydrate()
        return build_report(
            store.snapshot(), config or self.config, self.health, now or store.now(),
        )
