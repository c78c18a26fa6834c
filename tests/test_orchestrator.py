from __future__ import annotations

import json

from issuesync.config import SyncConfig
from issuesync.event import EventContext
from issuesync.filestore import LocalFileStore
from issuesync.models import OutcomeKind, RemoteIssue
from issuesync.orchestrator import build_gateway, run_sync


def _cfg(tmp_path, **kw) -> SyncConfig:
    return SyncConfig(token="tkn", repo="acme/widgets", workspace=tmp_path, **kw)


def _write(tmp_path, name: str, content: str) -> None:
    issues = tmp_path / "docs" / "issues"
    issues.mkdir(parents=True, exist_ok=True)
    (issues / name).write_text(content, encoding="utf-8")


def test_full_run_on_disk_writes_summary(tmp_path, make_gateway):
    _write(tmp_path, "001-existing.md", "#1: Existing\nBody\n")
    _write(tmp_path, "005-foo.md", "Foo\n")
    _write(tmp_path, "notes.md", "not an issue\n")
    gw = make_gateway([RemoteIssue(1, "open", "Existing")], next_number=9)
    summary_path = tmp_path / "out" / "summary.json"

    summary = run_sync(_cfg(tmp_path, summary_json=str(summary_path)), gateway=gw)

    assert [o.kind for o in summary.outcomes] == [OutcomeKind.UPDATED, OutcomeKind.DRIFTED]
    assert summary.rejected == ["docs/issues/notes.md"]
    flagged = (tmp_path / "docs" / "issues" / "005-foo.md").read_text(encoding="utf-8")
    assert flagged.startswith("<!-- issuesync:drift file=5 issue=9 -->")

    doc = json.loads(summary_path.read_text(encoding="utf-8"))
    assert doc["repo"] == "acme/widgets"
    assert doc["discovery_mode"] == "scan"
    assert doc["totals"] == {
        "total": 2,
        "succeeded": 2,
        "failed": 0,
        "updated": 1,
        "created": 0,
        "skipped": 0,
        "drifted": 1,
    }
    assert doc["outcomes"][1] == {
        "path": "docs/issues/005-foo.md",
        "outcome": "drifted",
        "number": 9,
        "previous_number": 5,
        "reason": "flagged",
    }


def test_push_event_limits_run_to_changed_files(tmp_path, make_gateway):
    _write(tmp_path, "001-a.md", "A")
    _write(tmp_path, "002-b.md", "B")
    gw = make_gateway([RemoteIssue(1, "open", "a"), RemoteIssue(2, "open", "b")])
    event = EventContext(name="push", payload={"commits": [{"modified": ["docs/issues/002-b.md"]}]})

    summary = run_sync(_cfg(tmp_path, event=event), gateway=gw)

    assert summary.discovery_mode == "changes"
    assert [o.path for o in summary.outcomes] == ["docs/issues/002-b.md"]


def test_missing_issues_directory_is_a_no_op(tmp_path, make_gateway):
    gw = make_gateway()

    summary = run_sync(_cfg(tmp_path), gateway=gw)

    assert summary.total == 0
    assert summary.failed == 0
    assert gw.calls == []


def test_dry_run_leaves_files_untouched(tmp_path, make_gateway, make_store):
    store = make_store({"docs/issues/005-foo.md": "Foo\n"})
    gw = make_gateway(dry_run=True)

    summary = run_sync(_cfg(tmp_path, dry_run=True), gateway=gw, store=store)

    assert summary.dry_run is True
    assert summary.outcomes[0].to_dict()["dry_run"] is True
    assert store.writes == []


def test_build_gateway_carries_dry_run(tmp_path):
    gateway = build_gateway(_cfg(tmp_path, dry_run=True, api_url="https://ghe.example.com/api/v3"))
    assert gateway.cfg.dry_run is True
    assert gateway._rest.base_url == "https://ghe.example.com/api/v3"


def test_local_store_is_default(tmp_path, make_gateway, monkeypatch):
    seen = []
    original = LocalFileStore.list_files

    def _spy(self, directory):
        seen.append(self.root)
        return original(self, directory)

    monkeypatch.setattr(LocalFileStore, "list_files", _spy)
    run_sync(_cfg(tmp_path), gateway=make_gateway())
    assert seen == [tmp_path]
