"""CLI: context-memory status, list, add, delete, pin, unpin, prune, export, import, templates, config validate."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from ..config import load_config, validate_config
from ..core import HealthReporter, LifecycleManager, MemoryRegistry, PersistenceError
from ..core.entry_store import EntryStore
from ..core.health import category_stats, insights
from ..storage import create_backend_factory
from ..storage.helpers import entry_from_dict, entry_to_dict
from ..templates import list_templates
from ..token_counter import format_token_count
from ..types import BudgetExceeded, ContextMemoryConfig

EXIT_BUDGET = 2


def _get_registry(config_path: str | None = None) -> tuple[MemoryRegistry, ContextMemoryConfig]:
    config = load_config(config_path)
    registry = MemoryRegistry(
        create_backend_factory(config.storage),
        token_budget=config.token_budget,
        enforce_budget_on_update=config.enforce_budget_on_update,
    )
    return registry, config


async def _get_store(args) -> tuple[EntryStore, MemoryRegistry, ContextMemoryConfig]:
    registry, config = _get_registry(args.config)
    store = registry.agent(args.agent) if args.agent else registry.workspace()
    await store.hydrate()
    return store, registry, config


async def cmd_status(args):
    """Show health report and per-category usage."""
    store, registry, config = await _get_store(args)
    report = await HealthReporter(registry, config.lifecycle, config.health).report(store.owner)

    print(f"Owner:          {store.owner}")
    print(f"Storage:        {config.storage.backend}")
    print(f"Entries:        {report.total_entries}")
    print(f"Tokens:         {format_token_count(report.total_tokens)} / {format_token_count(config.lifecycle.max_total_tokens)}")
    print(f"Budget Usage:   {report.token_budget_usage_pct:.1f}%")
    print(f"Pinned:         {report.pinned_count}")
    print(f"Stale:          {report.stale_count}")
    print(f"Expired:        {report.expired_count}")
    print(f"Recommendation: {report.recommendation.value}")
    print()

    print(f"{'Category':<15} {'Entries':>8} {'Tokens':>10}")
    print("-" * 35)
    for s in category_stats(store.snapshot()):
        print(f"{s.category.value:<15} {s.count:>8} {format_token_count(s.token_count):>10}")

    found = insights(store.snapshot(), config.lifecycle, store.now())
    if found:
        print()
        for insight in found:
            print(f"* {insight.title}: {insight.description}")


async def cmd_list(args):
    """List entries with optional filters."""
    store, _, _ = await _get_store(args)
    entries = store.filter_entries(
        query=args.query or "",
        scope=args.scope,
        category=args.category,
        tags=args.tag,
        sort=args.sort,
    )
    if not entries:
        print("No entries.")
        return

    print(f"{'ID':<38} {'Category':<12} {'Tokens':>7} {'Pin':>4}  Title")
    print("-" * 80)
    for e in entries:
        pin = "*" if e.pinned else ""
        print(f"{e.id:<38} {e.category.value:<12} {e.token_count:>7} {pin:>4}  {e.title}")


async def cmd_add(args):
    """Add an entry from --content, --file, or stdin."""
    store, _, _ = await _get_store(args)
    if args.content is not None:
        content = args.content
    elif args.file:
        content = Path(args.file).read_text(encoding="utf-8")
    else:
        content = sys.stdin.read()

    if args.template:
        result = await store.insert_from_template(args.template, content, title=args.title)
    else:
        result = await store.insert(
            args.title,
            content,
            args.category,
            args.tag or [],
            args.scope,
            pinned=args.pin,
            source_type="manual",
        )

    if isinstance(result, BudgetExceeded):
        print(
            f"Token budget exceeded: entry needs {result.requested_tokens:,} tokens, "
            f"only {result.available:,} of {result.budget:,} available.",
            file=sys.stderr,
        )
        sys.exit(EXIT_BUDGET)
    print(f"Added {result.id} ({result.token_count} tokens)")


async def cmd_delete(args):
    store, _, _ = await _get_store(args)
    if await store.delete(args.id):
        print(f"Deleted {args.id}")
    else:
        print(f"No entry with id {args.id}")


async def cmd_pin(args):
    store, _, _ = await _get_store(args)
    if args.command == "pin":
        entry = await store.pin(args.id)
    else:
        entry = await store.unpin(args.id)
    if entry is None:
        print(f"No entry with id {args.id}")
        return
    print(f"{'Pinned' if entry.pinned else 'Unpinned'} {entry.id}")


async def cmd_prune(args):
    """Run a pruning sweep. Agents are capacity-bounded; the workspace is not."""
    store, registry, config = await _get_store(args)
    manager = LifecycleManager(registry, config.lifecycle)
    if args.agent and not args.unbounded:
        result = await manager.prune_owner(store.owner)
    else:
        result = await manager.prune_unbounded(store.owner)

    print(f"Deleted:      {result.deleted_count}")
    print(f"Tokens freed: {format_token_count(result.freed_tokens)}")
    if result.failed_ids:
        print(f"Failed:       {len(result.failed_ids)} (re-run prune to retry)")


async def cmd_export(args):
    store, _, _ = await _get_store(args)
    entries = await store.export_all()
    text = json.dumps([entry_to_dict(e) for e in entries], indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Exported {len(entries)} entries to {args.output}")
    else:
        print(text)


async def cmd_import(args):
    store, _, _ = await _get_store(args)
    raw = json.loads(Path(args.file).read_text(encoding="utf-8"))
    entries = []
    for i, record in enumerate(raw):
        if not isinstance(record, dict):
            raise ValueError(f"Record {i} in {args.file} is not an object")
        try:
            entries.append(entry_from_dict(record))
        except KeyError as e:
            raise ValueError(f"Record {i} in {args.file} is missing field {e}") from e
    await store.import_all(entries)
    print(f"Imported {len(entries)} entries into {store.owner}")


def cmd_templates(args):
    print(f"{'ID':<22} {'Category':<12} {'Title'}")
    print("-" * 60)
    for t in list_templates():
        print(f"{t.id:<22} {t.category.value:<12} {t.title}")


def cmd_config_validate(args):
    """Validate config file."""
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        print("Config validation errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    else:
        print("Config is valid.")
        print(f"  Token budget: {config.token_budget:,}")
        print(f"  TTL days: {config.lifecycle.default_ttl_days}")
        print(f"  Stale days: {config.lifecycle.stale_days}")
        print(f"  Max entries per owner: {config.lifecycle.max_entries_per_owner}")
        print(f"  Storage: {config.storage.backend}")


ASYNC_COMMANDS = {
    "status": cmd_status,
    "list": cmd_list,
    "add": cmd_add,
    "delete": cmd_delete,
    "pin": cmd_pin,
    "unpin": cmd_pin,
    "prune": cmd_prune,
    "export": cmd_export,
    "import": cmd_import,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="context-memory",
        description="Token-budgeted memory store for AI context assembly",
    )
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--agent", "-a", help="Operate on an agent's collection instead of the workspace")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # status
    subparsers.add_parser("status", help="Show health report and category usage")

    # list
    list_parser = subparsers.add_parser("list", help="List entries")
    list_parser.add_argument("--query", "-q", help="Substring search")
    list_parser.add_argument("--category", help="Filter by category")
    list_parser.add_argument("--scope", help="Filter by scope")
    list_parser.add_argument("--tag", action="append", help="Require tag (repeatable)")
    list_parser.add_argument(
        "--sort", default="recent", choices=["recent", "oldest", "largest", "category"],
    )

    # add
    add_parser = subparsers.add_parser("add", help="Add an entry")
    add_parser.add_argument("title", nargs="?", default=None, help="Entry title")
    add_parser.add_argument("--content", help="Entry content (default: stdin)")
    add_parser.add_argument("--file", "-f", help="Read content from file")
    add_parser.add_argument("--category", default="facts")
    add_parser.add_argument("--scope", default="workspace")
    add_parser.add_argument("--tag", action="append", help="Tag (repeatable)")
    add_parser.add_argument("--pin", action="store_true", help="Pin the new entry")
    add_parser.add_argument("--template", help="Create from a template id")

    # delete / pin / unpin
    for name, help_text in (
        ("delete", "Delete an entry"),
        ("pin", "Pin an entry (exempt from pruning)"),
        ("unpin", "Unpin an entry"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("id", help="Entry id")

    # prune
    prune_parser = subparsers.add_parser("prune", help="Remove expired, stale and excess entries")
    prune_parser.add_argument(
        "--unbounded", action="store_true",
        help="Skip the capacity phase even for an agent collection",
    )

    # export / import
    export_parser = subparsers.add_parser("export", help="Export entries as JSON")
    export_parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    import_parser = subparsers.add_parser("import", help="Replace entries from a JSON export")
    import_parser.add_argument("file", help="JSON export file")

    # templates
    subparsers.add_parser("templates", help="List built-in templates")

    # config validate
    config_parser = subparsers.add_parser("config", help="Config operations")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("validate", help="Validate config file")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "add" and not (args.title or args.template):
        parser.error("add requires a title or --template")

    if args.command in ASYNC_COMMANDS:
        try:
            asyncio.run(ASYNC_COMMANDS[args.command](args))
        except PersistenceError as e:
            print(f"Storage error (please retry): {e}", file=sys.stderr)
            sys.exit(1)
        except (KeyError, TypeError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "templates":
        cmd_templates(args)
    elif args.command == "config":
        if args.config_command == "validate":
            cmd_config_validate(args)
        else:
            print("Usage: context-memory config validate")
            sys.exit(1)


if __name__ == "__main__":
    main()
