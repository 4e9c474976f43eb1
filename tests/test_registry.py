"""Tests for MemoryRegistry: owner isolation, sharing, recall."""

import pytest

from context_memory.core.registry import WORKSPACE_OWNER, MemoryRegistry, agent_owner
from context_memory.storage.memory import InMemoryBackend
from context_memory.types import BudgetExceeded, MemoryScope


def test_agent_owner_key():
    assert agent_owner("writer") == "agents/writer"


def test_stores_are_cached(registry):
    assert registry.workspace() is registry.get(WORKSPACE_OWNER)
    assert registry.agent("a") is registry.get("agents/a")
    assert registry.owners() == [WORKSPACE_OWNER, "agents/a"]


@pytest.mark.asyncio
async def test_owners_are_isolated(registry, backends):
    await registry.workspace().insert("shared", "team knowledge", "facts")
    await registry.agent("a").insert("private", "agent note", "facts")

    assert [e.title for e in registry.workspace().snapshot()] == ["shared"]
    assert [e.title for e in registry.agent("a").snapshot()] == ["private"]
    assert len(await backends["agents/a"].get_all()) == 1


@pytest.mark.asyncio
async def test_budget_is_per_owner(clock):
    registry = MemoryRegistry(lambda owner: InMemoryBackend(), token_budget=2, clock=clock)
    assert not isinstance(await registry.workspace().insert("w", "12345678", "facts"), BudgetExceeded)
    assert not isinstance(await registry.agent("a").insert("a", "12345678", "facts"), BudgetExceeded)
    assert isinstance(await registry.agent("a").insert("b", "x", "facts"), BudgetExceeded)


@pytest.mark.asyncio
async def test_clear_agent(registry):
    await registry.agent("a").insert("t", "c", "facts")
    await registry.workspace().insert("t", "c", "facts")
    await registry.clear_agent("a")
    assert len(registry.agent("a")) == 0
    assert len(registry.workspace()) == 1


@pytest.mark.asyncio
async def test_share_insight(registry):
    entry = await registry.agent("a").remember("Customers prefer weekly digests", "preferences")

    shared = await registry.share_insight("a", entry.id)

    assert shared.id != entry.id
    assert shared.scope == MemoryScope.WORKSPACE
    assert shared.source_type == "agent"
    assert shared.source_ref == f"agents/a/{entry.id}"
    assert registry.workspace().get(shared.id) is not None
    assert len(registry.agent("a")) == 1


@pytest.mark.asyncio
async def test_share_unknown_entry(registry):
    assert await registry.share_insight("a", "missing") is None
    assert len(registry.workspace()) == 0


@pytest.mark.asyncio
async def test_recall_includes_shared_insights(registry):
    await registry.agent("a").remember("Deploys happen on Tuesday", "workflows")
    other = await registry.agent("b").remember("Deploys need a change ticket", "workflows")
    await registry.share_insight("b", other.id)
    await registry.workspace().insert("Deploy policy", "deploys are frozen in December", "workflows")

    results = await registry.recall("a", "deploys")

    assert {e.content for e in results} == {
        "Deploys happen on Tuesday",
        "Deploys need a change ticket",
    }
