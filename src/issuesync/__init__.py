"""issuesync - keep docs/issues Markdown files and GitHub Issues in step.

High-level public API:

from issuesync import load_config, run_sync

cfg = load_config(overrides={'dry_run': True})
summary = run_sync(cfg)
print(summary.totals())

Each ``docs/issues/<number>-<slug>.md`` file maps to one GitHub issue. The
number in the file name is a hint; when GitHub assigns a different number
the file is flagged (or renamed) so the drift stays visible.
"""

from __future__ import annotations

from .config import ConfigError, SyncConfig, load_config
from .discovery import DiscoveryResult, discover_issue_files
from .models import IssueFile, Outcome, OutcomeKind, RemoteIssue, SyncSummary
from .orchestrator import run_sync
from .parser import ParseError, parse_issue_file
from .reconcile import Reconciler

# Keep in sync with pyproject.toml
__version__ = "0.2.0"

__all__ = [
    "ConfigError",
    "DiscoveryResult",
    "IssueFile",
    "Outcome",
    "OutcomeKind",
    "ParseError",
    "Reconciler",
    "RemoteIssue",
    "SyncConfig",
    "SyncSummary",
    "discover_issue_files",
    "load_config",
    "parse_issue_file",
    "run_sync",
]
