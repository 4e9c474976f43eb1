"""Built-in templates and category labels."""

from __future__ import annotations

from ..types import MemoryCategory, MemoryScope
from .base import CategoryMeta, MemoryTemplate, register_template

CATEGORY_META: list[CategoryMeta] = [
    CategoryMeta(
        key=MemoryCategory.DECISIONS,
        label="Decisions",
        description="Key decisions and rationale",
        examples=["Why we chose React", "Pricing strategy decision"],
    ),
    CategoryMeta(
        key=MemoryCategory.WORKFLOWS,
        label="Workflows",
        description="Processes and standard procedures",
        examples=["PR review process", "Release checklist"],
    ),
    CategoryMeta(
        key=MemoryCategory.PREFERENCES,
        label="Preferences",
        description="Team and workspace preferences",
        examples=["Code style conventions", "Communication norms"],
    ),
    CategoryMeta(
        key=MemoryCategory.PEOPLE,
        label="People",
        description="Team members, contacts, roles",
        examples=["Team roster", "Client contacts"],
    ),
    CategoryMeta(
        key=MemoryCategory.PROJECTS,
        label="Projects",
        description="Project context and status",
        examples=["Q1 OKRs", "Product roadmap"],
    ),
    CategoryMeta(
        key=MemoryCategory.FACTS,
        label="Facts",
        description="Reference data and knowledge",
        examples=["API endpoints", "Brand guidelines"],
    ),
]

BUILTIN_TEMPLATES: list[MemoryTemplate] = [
    MemoryTemplate(
        id="tpl-decision-record",
        title="Team Decision Record",
        description="Record a key decision with context and alternatives considered",
        category=MemoryCategory.DECISIONS,
        scope=MemoryScope.WORKSPACE,
        placeholder="Decision: [what] / Context: [why] / Alternatives: [rejected] / Date: [when]",
        tags=["decision", "rationale"],
    ),
    MemoryTemplate(
        id="tpl-sop",
        title="Standard Operating Procedure",
        description="Document a repeatable process with clear steps",
        category=MemoryCategory.WORKFLOWS,
        scope=MemoryScope.WORKSPACE,
        placeholder="Process: [name] / Steps: 1. ... 2. ... / Owner: [who] / Last updated: [date]",
        tags=["process", "procedure"],
    ),
    MemoryTemplate(
        id="tpl-brand-voice",
        title="Brand Voice Guidelines",
        description="Define tone, style, and communication standards",
        category=MemoryCategory.PREFERENCES,
        scope=MemoryScope.WORKSPACE,
        placeholder="Tone: [describe] / Do: [examples] / Don't: [examples] / Audience: [who]",
        tags=["brand", "voice", "guidelines"],
    ),
    MemoryTemplate(
        id="tpl-team-member",
        title="Team Member Profile",
        description="Store information about a team member",
        category=MemoryCategory.PEOPLE,
        scope=MemoryScope.WORKSPACE,
        placeholder="Name: / Role: / Expertise: / Contact: / Preferences:",
        tags=["team", "member", "profile"],
    ),
    MemoryTemplate(
        id="tpl-project-brief",
        title="Project Brief",
        description="Capture project goals, timeline, and stakeholders",
        category=MemoryCategory.PROJECTS,
        scope=MemoryScope.WORKSPACE,
        placeholder="Project: / Goal: / Timeline: / Success criteria: / Stakeholders:",
        tags=["project", "brief"],
    ),
    MemoryTemplate(
        id="tpl-api-reference",
        title="API Reference",
        description="Document an API endpoint with request and response details",
        category=MemoryCategory.FACTS,
        scope=MemoryScope.WORKSPACE,
        placeholder="Endpoint: / Method: / Auth: / Request: / Response: / Notes:",
        tags=["api", "reference", "endpoint"],
    ),
    MemoryTemplate(
        id="tpl-meeting-notes",
        title="Meeting Notes Template",
        description="Structured meeting notes with decisions and action items",
        category=MemoryCategory.DECISIONS,
        scope=MemoryScope.WORKSPACE,
        placeholder="Date: / Attendees: / Agenda: / Decisions: / Action items:",
        tags=["meeting", "notes", "actions"],
    ),
    MemoryTemplate(
        id="tpl-onboarding",
        title="Onboarding Checklist",
        description="New hire onboarding steps and key resources",
        category=MemoryCategory.WORKFLOWS,
        scope=MemoryScope.WORKSPACE,
        placeholder="New hire: / Start date: / Setup tasks: [list] / Key contacts: / Resources:",
        tags=["onboarding", "checklist", "new-hire"],
    ),
]

for _template in BUILTIN_TEMPLATES:
    register_template(_template)


def get_category_meta(category: MemoryCategory) -> CategoryMeta:
    for meta in CATEGORY_META:
        if meta.key == category:
            return meta
    raise KeyError(category)
