"""issuesync CLI.

Subcommands:
  sync      -> create/update GitHub issues from docs/issues/*.md (summary JSON)
  validate  -> parse candidate files and report titles / numbers, no network
  doctor    -> check token, repository access and issue listing permissions
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import PurePosixPath
from typing import Any

import requests

from issuesync.config import (
    DEFAULT_ISSUES_DIR,
    ConfigError,
    load_config,
    load_settings,
    resolve_workspace,
)
from issuesync.discovery import discover_issue_files
from issuesync.errors import redact
from issuesync.filestore import LocalFileStore
from issuesync.github_rest import GitHubAPIError, GitHubRestClient
from issuesync.logging import configure_logging
from issuesync.models import OutcomeKind, SyncSummary
from issuesync.orchestrator import run_sync
from issuesync.parser import ParseError, parse_issue_file
from issuesync.reconcile import DRIFT_POLICIES
from issuesync.ux import (
    print_error,
    print_header,
    print_operation_status,
    print_success,
    print_summary_box,
    print_warning,
)

CONFIG_HELP = "YAML settings file (default: issuesync.config.yaml when present)"
REPO_HELP = "Target repository owner/name (env: GITHUB_REPOSITORY)"
WORKSPACE_HELP = "Repository checkout root (env: GITHUB_WORKSPACE, default: cwd)"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="issuesync", description="Sync docs/issues Markdown files with GitHub Issues"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only print warnings and compact totals (env: ISSUESYNC_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    ps = sub.add_parser("sync", help="Create/update issues from Markdown files")
    ps.add_argument("--config", help=CONFIG_HELP)
    ps.add_argument("--repo", help=REPO_HELP)
    ps.add_argument("--workspace", help=WORKSPACE_HELP)
    ps.add_argument("--issues-dir", help=f"Issues directory relative to the workspace (default: {DEFAULT_ISSUES_DIR})")
    ps.add_argument("--event-name", help="Triggering event (env: GITHUB_EVENT_NAME)")
    ps.add_argument("--event-path", help="Event payload JSON (env: GITHUB_EVENT_PATH)")
    ps.add_argument("--full-scan", action="store_true", default=None, help="Ignore the change list")
    ps.add_argument("--drift-policy", choices=DRIFT_POLICIES, help="flag (default) or rename")
    ps.add_argument(
        "--allow-reopen",
        action="store_true",
        default=None,
        help="Update (and reopen) a closed issue whose number matches a file",
    )
    ps.add_argument("--label", dest="labels", action="append", help="Label for created issues (repeatable)")
    ps.add_argument("--page-size", type=int, help="Issues per page when searching titles (max 100)")
    ps.add_argument("--dry-run", action="store_true", default=None)
    ps.add_argument("--summary-json", help="Write the run summary to this path")
    ps.add_argument("--json-logs", action="store_true", default=None, help="Emit JSON log lines")
    ps.add_argument("--log-level", help="Logging level (default INFO)")
    ps.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit 1 when any file failed (default: per-file failures keep exit 0)",
    )

    pv = sub.add_parser("validate", help="Check file names and titles without contacting GitHub")
    pv.add_argument("--config", help=CONFIG_HELP)
    pv.add_argument("--workspace", help=WORKSPACE_HELP)
    pv.add_argument("--issues-dir")

    pd = sub.add_parser("doctor", help="Diagnose token and repository permissions")
    pd.add_argument("--config", help=CONFIG_HELP)
    pd.add_argument("--repo", help=REPO_HELP)
    pd.add_argument("--workspace", help=WORKSPACE_HELP)

    return p


def _is_quiet(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "quiet", False)) or os.environ.get("ISSUESYNC_QUIET") == "1"


def _sync_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "repo": args.repo,
        "workspace": args.workspace,
        "issues_dir": args.issues_dir,
        "event_name": args.event_name,
        "event_path": args.event_path,
        "full_scan": args.full_scan,
        "drift_policy": args.drift_policy,
        "allow_reopen": args.allow_reopen,
        "labels": args.labels,
        "page_size": args.page_size,
        "dry_run": args.dry_run,
        "summary_json": args.summary_json,
        "json_logs": args.json_logs,
        "log_level": args.log_level,
    }


def _print_summary(summary: SyncSummary, quiet: bool) -> None:
    totals = summary.totals()
    if quiet:
        print("[sync] totals", json.dumps(totals))
        return
    items: list[tuple[str, str | int]] = [
        ("Files", totals["total"]),
        ("Succeeded", totals["succeeded"]),
        ("Failed", totals["failed"]),
        ("Updated", totals[OutcomeKind.UPDATED.value]),
        ("Created", totals[OutcomeKind.CREATED.value]),
        ("Drifted", totals[OutcomeKind.DRIFTED.value]),
        ("Skipped", totals[OutcomeKind.SKIPPED.value]),
    ]
    print_summary_box("Sync Summary" + (" (dry run)" if summary.dry_run else ""), items)
    for outcome in summary.outcomes:
        if outcome.kind is OutcomeKind.DRIFTED:
            target = outcome.new_path or outcome.path
            print_warning(
                f"{outcome.path}: expected #{outcome.previous_number}, got #{outcome.number} "
                f"({outcome.reason}: {target})"
            )
        elif outcome.kind is OutcomeKind.FAILED:
            print_error(f"{outcome.path}: {outcome.reason}")


def _cmd_sync(args: argparse.Namespace) -> int:
    quiet = _is_quiet(args)
    cfg = load_config(args.config, _sync_overrides(args))
    configure_logging(
        json_logging=cfg.logging_json_enabled,
        level="WARNING" if quiet else cfg.logging_level,
    )
    if not quiet:
        mode = "DRY RUN" if cfg.dry_run else "LIVE"
        print_operation_status("sync", "starting", f"repo={cfg.repo} mode={mode}")
    summary = run_sync(cfg)
    _print_summary(summary, quiet)
    if not quiet:
        status = "completed" if summary.failed == 0 else "partial"
        print_operation_status("sync", status)
        if summary.succeeded:
            print(f"  https://github.com/{cfg.repo}/issues")
    if args.fail_on_error and summary.failed:
        return 1
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    source = settings.get("source") if isinstance(settings.get("source"), dict) else {}
    workspace = resolve_workspace(args.workspace or source.get("workspace"))
    issues_dir = args.issues_dir or source.get("issues_dir") or DEFAULT_ISSUES_DIR
    configure_logging(level="WARNING")
    store = LocalFileStore(workspace)
    found = discover_issue_files(store, issues_dir, None, full_scan=True)
    print_header(f"Issue files in {issues_dir} ({len(found.paths)})")
    problems: list[str] = [f"{name}: expected <number>-<description>.md" for name in found.rejected]
    for path in found.paths:
        try:
            issue_file = parse_issue_file(path, store.read_file(path))
        except ParseError as exc:
            problems.append(f"{path}: {exc}")
            continue
        note = ""
        if issue_file.drift_marker is not None:
            note = f" [flagged: issue #{issue_file.drift_marker}]"
        elif issue_file.embedded_number not in (None, issue_file.file_number):
            note = f" [header says #{issue_file.embedded_number}]"
        print(f"  #{issue_file.file_number:<5} {issue_file.derived_title}{note}")
    if problems:
        for problem in problems:
            print_warning(problem)
        return 1
    print_success("[validate] ok")
    return 0


def _cmd_doctor(args: argparse.Namespace) -> int:
    """Token, repository and issue-listing checks; never creates anything."""
    problems: list[str] = []
    configure_logging(level="WARNING")
    try:
        cfg = load_config(args.config, {"repo": args.repo, "workspace": args.workspace})
    except ConfigError as exc:
        print(f"[doctor] configuration: {exc}")
        problems.append(str(exc))
        return _doctor_emit(problems)
    print(f"[doctor] repo: {cfg.repo}")
    print("[doctor] token: present")
    print(f"[doctor] workspace: {cfg.workspace}")
    issues_root = cfg.workspace / PurePosixPath(cfg.issues_dir)
    print(f"[doctor] issues dir: {cfg.issues_dir} ({'found' if issues_root.is_dir() else 'missing'})")
    client = GitHubRestClient(token=cfg.token, repo=cfg.repo, base_url=cfg.api_url)
    try:
        repo_info = client.get_repository()
    except (GitHubAPIError, requests.RequestException) as exc:
        problems.append(f"Cannot read repository{_status_suffix(exc)}: {redact(str(exc))}")
        return _doctor_emit(problems)
    print(f"[doctor] repository readable: {repo_info.get('full_name', cfg.repo)}")
    if repo_info.get("has_issues") is False:
        problems.append("Issues are disabled for this repository")
    permissions = repo_info.get("permissions")
    if isinstance(permissions, dict) and not (permissions.get("push") or permissions.get("triage")):
        problems.append("Token lacks write access to issues")
    try:
        issues = client.list_issues(state="all", page=1, per_page=1)
        print(f"[doctor] list issues ok: fetched {len(issues)} issue(s)")
    except (GitHubAPIError, requests.RequestException) as exc:
        problems.append(f"Cannot list issues{_status_suffix(exc)}: {redact(str(exc))}")
    return _doctor_emit(problems)


def _status_suffix(exc: Exception) -> str:
    status = getattr(exc, "status", None)
    return f" ({status})" if isinstance(status, int) else ""


def _doctor_emit(problems: list[str]) -> int:
    if problems:
        print_error(f"{len(problems)} problem(s) detected:")
        for p in problems:
            print(f"  • {p}")
        return 2
    print_success("All checks passed!")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handlers = {
        "sync": _cmd_sync,
        "validate": _cmd_validate,
        "doctor": _cmd_doctor,
    }
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    try:
        return handler(args)
    except ConfigError as exc:
        print_error(f"[{args.cmd}] {exc}")
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
