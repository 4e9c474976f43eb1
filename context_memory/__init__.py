"""context-memory: token-budgeted knowledge store with importance-driven eviction."""

from .config import load_config
from .core import EntryStore, HealthReporter, LifecycleManager, MemoryRegistry, PersistenceError
from .token_counter import TOKEN_BUDGET, count_tokens, format_token_count
from .types import (
    BudgetExceeded,
    ContextMemoryConfig,
    HealthReport,
    LifecycleConfig,
    MemoryCategory,
    MemoryEntry,
    MemoryScope,
    PruneResult,
    Recommendation,
)

__version__ = "0.1.0"

__all__ = [
    "TOKEN_BUDGET",
    "BudgetExceeded",
    "ContextMemoryConfig",
    "EntryStore",
    "HealthReport",
    "HealthReporter",
    "LifecycleConfig",
    "LifecycleManager",
    "MemoryCategory",
    "MemoryEntry",
    "MemoryRegistry",
    "MemoryScope",
    "PersistenceError",
    "PruneResult",
    "Recommendation",
    "count_tokens",
    "format_token_count",
    "load_config",
]
