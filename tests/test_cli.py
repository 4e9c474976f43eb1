"""Tests for the context-memory CLI."""

from __future__ import annotations

import json
import subprocess
import sys

import pytest
import yaml

from context_memory.cli.main import EXIT_BUDGET, main


@pytest.fixture()
def config_path(tmp_path, monkeypatch):
    """Filesystem-backed config in a clean temporary directory."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "context-memory.yaml"
    path.write_text(yaml.safe_dump({
        "token_budget": 50,
        "lifecycle": {"max_entries_per_owner": 2},
        "storage": {"backend": "filesystem", "root": str(tmp_path / "data")},
    }))
    return str(path)


def _add(config_path, capsys, *args) -> str:
    main(["--config", config_path, *args])
    out = capsys.readouterr().out
    assert out.startswith("Added ")
    return out.split()[1]


def test_add_and_list(config_path, capsys):
    entry_id = _add(config_path, capsys, "add", "Release steps", "--content", "tag, build, ship",
                    "--category", "workflows", "--tag", "ops")
    main(["--config", config_path, "list"])
    out = capsys.readouterr().out
    assert entry_id in out
    assert "workflows" in out
    assert "Release steps" in out


def test_list_empty(config_path, capsys):
    main(["--config", config_path, "list"])
    assert "No entries." in capsys.readouterr().out


def test_add_from_template(config_path, capsys):
    _add(config_path, capsys, "add", "--template", "tpl-sop", "--content", "1. test 2. ship")
    main(["--config", config_path, "list", "--category", "workflows"])
    assert "Standard Operating Procedure" in capsys.readouterr().out


def test_add_requires_title_or_template(config_path):
    with pytest.raises(SystemExit) as exc:
        main(["--config", config_path, "add", "--content", "x"])
    assert exc.value.code != 0


def test_add_over_budget_exits(config_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--config", config_path, "add", "Big", "--content", "x" * 400])
    assert exc.value.code == EXIT_BUDGET
    assert "Token budget exceeded" in capsys.readouterr().err


def test_pin_unpin_delete(config_path, capsys):
    entry_id = _add(config_path, capsys, "add", "Note", "--content", "remember this")

    main(["--config", config_path, "pin", entry_id])
    assert f"Pinned {entry_id}" in capsys.readouterr().out
    main(["--config", config_path, "unpin", entry_id])
    assert f"Unpinned {entry_id}" in capsys.readouterr().out
    main(["--config", config_path, "delete", entry_id])
    assert f"Deleted {entry_id}" in capsys.readouterr().out
    main(["--config", config_path, "delete", entry_id])
    assert "No entry with id" in capsys.readouterr().out


def test_status(config_path, capsys):
    _add(config_path, capsys, "add", "Note", "--content", "x" * 120)
    main(["--config", config_path, "status"])
    out = capsys.readouterr().out
    assert "Entries:        1" in out
    assert "Budget Usage:   60.0%" in out
    assert "Recommendation: review_recommended" in out
    assert "Add Decisions memories" in out


def test_prune_agent_applies_capacity(config_path, capsys):
    for i in range(4):
        _add(config_path, capsys, "--agent", "writer", "add", f"n{i}", "--content", "note")
    main(["--config", config_path, "--agent", "writer", "prune"])
    assert "Deleted:      2" in capsys.readouterr().out

    main(["--config", config_path, "--agent", "writer", "list"])
    out = capsys.readouterr().out
    assert out.count("facts") == 2


def test_prune_workspace_is_unbounded(config_path, capsys):
    for i in range(4):
        _add(config_path, capsys, "add", f"n{i}", "--content", "note")
    main(["--config", config_path, "prune"])
    assert "Deleted:      0" in capsys.readouterr().out


def test_export_import(config_path, capsys, tmp_path):
    _add(config_path, capsys, "add", "Keep", "--content", "exported text")
    export_file = tmp_path / "export.json"
    main(["--config", config_path, "export", "--output", str(export_file)])
    capsys.readouterr()

    records = json.loads(export_file.read_text())
    assert records[0]["title"] == "Keep"
    assert records[0]["tokenCount"] == 4

    main(["--config", config_path, "--agent", "copy", "import", str(export_file)])
    assert "Imported 1 entries into agents/copy" in capsys.readouterr().out
    main(["--config", config_path, "--agent", "copy", "list"])
    assert "Keep" in capsys.readouterr().out


def test_import_rejects_incomplete_record(config_path, capsys, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([{"title": "no id", "category": "facts"}]))
    with pytest.raises(SystemExit) as exc:
        main(["--config", config_path, "import", str(bad)])
    assert exc.value.code == 1
    assert "missing field 'id'" in capsys.readouterr().err


def test_import_rejects_non_record(config_path, capsys, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([42]))
    with pytest.raises(SystemExit) as exc:
        main(["--config", config_path, "import", str(bad)])
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_config_validate(config_path, capsys):
    main(["--config", config_path, "config", "validate"])
    out = capsys.readouterr().out
    assert "Config is valid." in out
    assert "Storage: filesystem" in out


def test_config_validate_reports_errors(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("lifecycle:\n  stale_days: 0\n")
    with pytest.raises(SystemExit):
        main(["--config", str(path), "config", "validate"])
    assert "lifecycle.stale_days must be > 0" in capsys.readouterr().out


def test_templates_via_module(tmp_path):
    result = subprocess.run(
        [sys.executable, "-m", "context_memory.cli.main", "templates"],
        capture_output=True,
        text=True,
        cwd=tmp_path,
    )
    assert result.returncode == 0
    assert "tpl-decision-record" in result.stdout
