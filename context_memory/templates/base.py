"""Template registry: register, lookup, and list memory templates."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..types import MemoryCategory, MemoryScope


@dataclass
class MemoryTemplate:
    id: str
    title: str
    description: str
    category: MemoryCategory
    scope: MemoryScope
    placeholder: str
    tags: list[str] = field(default_factory=list)


@dataclass
class CategoryMeta:
    key: MemoryCategory
    label: str
    description: str
    examples: list[str] = field(default_factory=list)


_TEMPLATES: dict[str, MemoryTemplate] = {}


def register_template(template: MemoryTemplate) -> None:
    """Register a template by id."""
    _TEMPLATES[template.id] = template


def get_template(template_id: str) -> MemoryTemplate | None:
    """Return a template by id, or None if not found."""
    return _TEMPLATES.get(template_id)


def list_templates(category: MemoryCategory | None = None) -> list[MemoryTemplate]:
    """Return all registered templates, optionally for one category."""
    templates = list(_TEMPLATES.values())
    if category is not None:
        templates = [t for t in templates if t.category == category]
    return templates
