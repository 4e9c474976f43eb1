"""All dataclasses, enums, and result types for context-memory."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .token_counter import TOKEN_BUDGET


# ---------------------------------------------------------------------------
# Closed vocabularies
# ---------------------------------------------------------------------------

class MemoryCategory(str, Enum):
    DECISIONS = "decisions"
    WORKFLOWS = "workflows"
    PREFERENCES = "preferences"
    PEOPLE = "people"
    PROJECTS = "projects"
    FACTS = "facts"


class MemoryScope(str, Enum):
    WORKSPACE = "workspace"
    PERSONAL = "personal"
    TEAM = "team"
    PROJECT = "project"


class SortOrder(str, Enum):
    RECENT = "recent"
    OLDEST = "oldest"
    LARGEST = "largest"
    CATEGORY = "category"


class Recommendation(str, Enum):
    HEALTHY = "healthy"
    REVIEW_RECOMMENDED = "review_recommended"
    PRUNING_NEEDED = "pruning_needed"


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

@dataclass
class MemoryEntry:
    """One unit of stored knowledge.

    ``token_count`` is always ``count_tokens(content)``; stores recompute it
    on every content change instead of trusting a cached value.
    """
    id: str
    title: str
    content: str
    category: MemoryCategory
    scope: MemoryScope
    token_count: int
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
    last_accessed_at: datetime | None = None
    access_count: int = 0
    pinned: bool = False
    source_type: str | None = None  # "manual", "template", "agent", "auto-*"
    source_ref: str | None = None


@dataclass
class BudgetExceeded:
    """Rejected write: the owner's token budget would be exceeded.

    Returned (never raised) so callers can tell a budget rejection apart
    from any other outcome.
    """
    requested_tokens: int
    current_tokens: int
    budget: int

    @property
    def available(self) -> int:
        return max(0, self.budget - self.current_tokens)


# ---------------------------------------------------------------------------
# Lifecycle & health
# ---------------------------------------------------------------------------

@dataclass
class LifecycleConfig:
    default_ttl_days: int = 90
    stale_days: int = 30
    max_entries_per_owner: int = 500
    max_total_tokens: int = TOKEN_BUDGET


@dataclass
class PruneResult:
    deleted_count: int = 0
    freed_tokens: int = 0
    deleted_ids: list[str] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)

    def record(self, entry: MemoryEntry) -> None:
        self.deleted_ids.append(entry.id)
        self.deleted_count += 1
        self.freed_tokens += entry.token_count


@dataclass
class HealthConfig:
    review_threshold_pct: float = 50.0
    pruning_threshold_pct: float = 80.0


@dataclass
class HealthReport:
    total_entries: int
    total_tokens: int
    stale_count: int
    expired_count: int
    pinned_count: int
    token_budget_usage_pct: float
    recommendation: Recommendation


@dataclass
class CategoryStats:
    category: MemoryCategory
    count: int = 0
    token_count: int = 0


@dataclass
class MemoryInsight:
    type: str  # "suggestion" or "stale"
    title: str
    description: str
    action_label: str | None = None
    template_id: str | None = None


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class StorageConfig:
    backend: str = "sqlite"  # "sqlite", "filesystem", "memory"
    root: str = ".context-memory"
    sqlite_path: str = ".context-memory/memory.db"


@dataclass
class ContextMemoryConfig:
    version: str = "0.1"
    token_budget: int = TOKEN_BUDGET
    enforce_budget_on_update: bool = False
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
