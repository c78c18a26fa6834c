"""Candidate file discovery.

Two modes feed the reconciler:

* ``changes`` - the push payload's added/modified paths, narrowed to files
  directly inside the issues directory whose name follows
  ``<digits>-<description>.md``.
* ``scan`` - every matching file in the issues directory. Used for events
  without a change list, when forced, and as the fallback whenever the
  change list yields nothing.

Names that sit in the issues directory but miss the pattern are reported
back as ``rejected`` so the run log can point at them; they are not errors.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from .filestore import FileStore
from .logging import get_logger
from .parser import file_number_of, match_filename


@dataclass
class DiscoveryResult:
    paths: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
    mode: str = "scan"


def _normalize_dir(issues_dir: str) -> PurePosixPath:
    return PurePosixPath(issues_dir.strip().strip("/") or ".")


def _normalize_path(path: str) -> PurePosixPath:
    cleaned = path.strip().replace("\\", "/")
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    return PurePosixPath(cleaned)


def _sort_key(path: str) -> tuple[int, str]:
    name = PurePosixPath(path).name
    number = file_number_of(name)
    return (number if number is not None else -1, name)


def sort_numerically(paths: Iterable[str]) -> list[str]:
    """Order by numeric prefix (``2-`` before ``10-``), then by name."""
    return sorted(paths, key=_sort_key)


def _split(names: Iterable[PurePosixPath]) -> tuple[list[str], list[str]]:
    accepted: dict[str, None] = {}
    rejected: dict[str, None] = {}
    for p in names:
        if match_filename(p.name):
            accepted[p.as_posix()] = None
        else:
            rejected[p.as_posix()] = None
    return list(accepted), list(rejected)


def _from_changes(changed: Iterable[str], base: PurePosixPath) -> tuple[list[str], list[str]]:
    inside = [p for p in map(_normalize_path, changed) if p.parent == base]
    return _split(inside)


def _from_scan(store: FileStore, base: PurePosixPath) -> tuple[list[str], list[str]]:
    return _split(base / name for name in store.list_files(base.as_posix()))


def _report_rejected(rejected: Iterable[str]) -> None:
    logger = get_logger()
    for name in rejected:
        logger.warning(f"[discover] ignoring {name}: expected <number>-<description>.md")


def discover_issue_files(
    store: FileStore,
    issues_dir: str,
    changed_paths: list[str] | None = None,
    *,
    full_scan: bool = False,
) -> DiscoveryResult:
    logger = get_logger()
    base = _normalize_dir(issues_dir)
    rejected: dict[str, None] = {}

    if changed_paths is not None and not full_scan:
        accepted, rejected_changes = _from_changes(changed_paths, base)
        rejected.update(dict.fromkeys(rejected_changes))
        if accepted:
            logger.info(
                f"[discover] {len(accepted)} changed issue file(s)",
                operation="discover",
                mode="changes",
            )
            _report_rejected(rejected)
            return DiscoveryResult(sort_numerically(accepted), list(rejected), "changes")
        logger.info("[discover] no matching changes; falling back to full scan", operation="discover")

    accepted, rejected_scan = _from_scan(store, base)
    rejected.update(dict.fromkeys(rejected_scan))
    if accepted:
        logger.info(
            f"[discover] {len(accepted)} issue file(s) in {base.as_posix()}",
            operation="discover",
            mode="scan",
        )
    else:
        logger.info(
            f"[discover] no files named <number>-<description>.md in {base.as_posix()}",
            operation="discover",
            mode="scan",
        )
    _report_rejected(rejected)
    return DiscoveryResult(sort_numerically(accepted), list(rejected), "scan")


__all__ = ["DiscoveryResult", "discover_issue_files", "sort_numerically"]
