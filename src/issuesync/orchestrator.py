"""Batch run wiring: discover -> parse/reconcile -> summary.

``run_sync`` is what the CLI calls; it builds the REST gateway and local
file store from a :class:`SyncConfig` unless the caller supplies its own
(tests pass fakes), and writes the optional summary JSON document.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import SyncConfig
from .discovery import DiscoveryResult, discover_issue_files
from .filestore import FileStore, LocalFileStore
from .github_issues import IssueGateway, IssuesClient, IssuesClientConfig
from .github_rest import GitHubRestClient
from .logging import get_logger
from .models import SyncSummary
from .reconcile import Reconciler


def build_gateway(cfg: SyncConfig) -> IssuesClient:
    rest = GitHubRestClient(token=cfg.token, repo=cfg.repo, base_url=cfg.api_url)
    return IssuesClient(IssuesClientConfig(repo=cfg.repo, dry_run=cfg.dry_run), rest)


def discover(cfg: SyncConfig, store: FileStore) -> DiscoveryResult:
    return discover_issue_files(
        store,
        cfg.issues_dir,
        cfg.event.changed_paths(),
        full_scan=cfg.full_scan,
    )


def run_sync(
    cfg: SyncConfig,
    *,
    gateway: IssueGateway | None = None,
    store: FileStore | None = None,
) -> SyncSummary:
    logger = get_logger()
    store = store or LocalFileStore(cfg.workspace)
    gateway = gateway or build_gateway(cfg)
    logger.log_operation(
        "sync",
        repo=cfg.repo,
        event=cfg.event.name,
        issues_dir=cfg.issues_dir,
        drift_policy=cfg.drift_policy,
        dry_run=cfg.dry_run,
    )
    with logger.timed_operation("sync_batch", repo=cfg.repo):
        found = discover(cfg, store)
        summary = SyncSummary(
            rejected=found.rejected, discovery_mode=found.mode, dry_run=cfg.dry_run
        )
        if found.paths:
            reconciler = Reconciler(
                gateway,
                store,
                labels=cfg.labels,
                drift_policy=cfg.drift_policy,
                allow_reopen=cfg.allow_reopen,
                page_size=cfg.page_size,
                dry_run=cfg.dry_run,
            )
            summary.outcomes = reconciler.run(found.paths)
        else:
            logger.info("[sync] nothing to do")
    totals = summary.totals()
    logger.log_operation("sync_totals", **totals)
    if cfg.summary_json:
        write_summary(Path(cfg.summary_json), summary, repo=cfg.repo)
    return summary


def write_summary(path: Path, summary: SyncSummary, *, repo: str | None = None) -> None:
    doc: dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "repo": repo,
        **summary.to_dict(),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
    get_logger().info(f"[sync] summary -> {path}")


__all__ = ["run_sync", "build_gateway", "discover", "write_summary"]
