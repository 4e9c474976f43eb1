"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .storage import BACKENDS
from .token_counter import TOKEN_BUDGET
from .types import ContextMemoryConfig, HealthConfig, LifecycleConfig, StorageConfig

CONFIG_FILENAMES = [
    "context-memory.yaml",
    "context-memory.yml",
    "context-memory.json",
]


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _build_config(raw: dict[str, Any]) -> ContextMemoryConfig:
    """Build a ContextMemoryConfig from a raw dict."""
    token_budget = raw.get("token_budget", TOKEN_BUDGET)

    lifecycle_raw = raw.get("lifecycle", {})
    lifecycle = LifecycleConfig(
        default_ttl_days=lifecycle_raw.get("default_ttl_days", 90),
        stale_days=lifecycle_raw.get("stale_days", 30),
        max_entries_per_owner=lifecycle_raw.get("max_entries_per_owner", 500),
        max_total_tokens=lifecycle_raw.get("max_total_tokens", token_budget),
    )

    health_raw = raw.get("health", {})
    health = HealthConfig(
        review_threshold_pct=health_raw.get("review_threshold_pct", 50.0),
        pruning_threshold_pct=health_raw.get("pruning_threshold_pct", 80.0),
    )

    storage_raw = raw.get("storage", {})
    root = storage_raw.get("root", ".context-memory")
    storage = StorageConfig(
        backend=storage_raw.get("backend", "sqlite"),
        root=root,
        sqlite_path=storage_raw.get("sqlite_path", f"{root}/memory.db"),
    )

    return ContextMemoryConfig(
        version=str(raw.get("version", "0.1")),
        token_budget=token_budget,
        enforce_budget_on_update=raw.get("enforce_budget_on_update", False),
        lifecycle=lifecycle,
        health=health,
        storage=storage,
    )


def validate_config(config: ContextMemoryConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    if config.token_budget <= 0:
        errors.append("token_budget must be > 0")

    lc = config.lifecycle
    if lc.default_ttl_days <= 0:
        errors.append("lifecycle.default_ttl_days must be > 0")
    if lc.stale_days <= 0:
        errors.append("lifecycle.stale_days must be > 0")
    if lc.max_entries_per_owner < 1:
        errors.append("lifecycle.max_entries_per_owner must be >= 1")
    if lc.max_total_tokens <= 0:
        errors.append("lifecycle.max_total_tokens must be > 0")

    if config.health.review_threshold_pct >= config.health.pruning_threshold_pct:
        errors.append(
            f"review_threshold_pct ({config.health.review_threshold_pct}) must be < "
            f"pruning_threshold_pct ({config.health.pruning_threshold_pct})"
        )

    if config.storage.backend not in BACKENDS:
        errors.append(
            f"Unknown storage backend '{config.storage.backend}' "
            f"(expected one of: {', '.join(BACKENDS)})"
        )

    return errors


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
) -> ContextMemoryConfig:
    """Load config from dict, explicit path, or auto-discover."""
    if config_dict is not None:
        return _build_config(config_dict)

    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_config()

    if path is None:
        # Return defaults
        return _build_config({})

    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text) or {}

    return _build_config(raw)
