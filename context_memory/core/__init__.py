from .backend import EntryBackend, PersistenceError
from .entry_store import EntryStore
from .health import HealthReporter, build_report
from .lifecycle import LifecycleManager, identify_expired, identify_stale, importance_score
from .registry import WORKSPACE_OWNER, MemoryRegistry, agent_owner

__all__ = [
    "EntryBackend",
    "EntryStore",
    "HealthReporter",
    "LifecycleManager",
    "MemoryRegistry",
    "PersistenceError",
    "WORKSPACE_OWNER",
    "agent_owner",
    "build_report",
    "identify_expired",
    "identify_stale",
    "importance_score",
]
