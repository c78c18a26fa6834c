from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .env_auth import EnvAuthConfig, create_env_auth_manager
from .errors import ConfigError
from .event import EventContext, load_event
from .github_rest import DEFAULT_API_URL
from .reconcile import DEFAULT_LABELS, DEFAULT_PAGE_SIZE, DRIFT_FLAG, DRIFT_POLICIES

CONFIG_DEFAULT = 'issuesync.config.yaml'
DEFAULT_ISSUES_DIR = 'docs/issues'


@dataclass
class SyncConfig:
    """Everything one batch run needs, resolved once at entry."""

    token: str
    repo: str
    workspace: Path
    event: EventContext = field(default_factory=EventContext)
    issues_dir: str = DEFAULT_ISSUES_DIR
    labels: list[str] = field(default_factory=lambda: list(DEFAULT_LABELS))
    drift_policy: str = DRIFT_FLAG
    allow_reopen: bool = False
    full_scan: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    dry_run: bool = False
    api_url: str = DEFAULT_API_URL
    summary_json: str | None = None
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = 'INFO'


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:], value)
    return value


def load_settings(path: str | Path | None) -> dict[str, Any]:
    """Read the optional YAML settings file.

    An explicit ``path`` must exist; without one the default file name is
    tried in the working directory and silently skipped when absent.
    """
    if path is None:
        p = Path(CONFIG_DEFAULT)
        if not p.exists():
            return {}
    else:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw = yaml.safe_load(p.read_text(encoding='utf-8')) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
    if not isinstance(raw, dict):
        raise ConfigError(f'Configuration file {p} must contain a mapping')
    return cast(dict[str, Any], raw)


def _section(raw: Mapping[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name)
    return cast(dict[str, Any], value) if isinstance(value, dict) else {}


def _pick(overrides: Mapping[str, Any], key: str, *fallbacks: Any) -> Any:
    value = overrides.get(key)
    if value is not None:
        return value
    for fb in fallbacks:
        if fb is not None:
            return fb
    return None


def resolve_workspace(value: str | Path | None) -> Path:
    workspace = Path(value or os.environ.get('GITHUB_WORKSPACE') or Path.cwd())
    if not workspace.is_dir():
        raise ConfigError(f'Workspace directory not found: {workspace}')
    if not os.access(workspace, os.R_OK | os.X_OK):
        raise ConfigError(f'Workspace directory is not readable: {workspace}')
    return workspace


def _resolve_repo(value: Any) -> str:
    repo = str(value or os.environ.get('GITHUB_REPOSITORY') or '').strip()
    if not repo:
        raise ConfigError('No repository configured (set GITHUB_REPOSITORY or pass --repo owner/name)')
    owner, sep, name = repo.partition('/')
    if not sep or not owner or not name or '/' in name:
        raise ConfigError(f'Repository must look like owner/name, got {repo!r}')
    return repo


def _resolve_token(value: Any, environment: Mapping[str, Any]) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    manager = create_env_auth_manager(
        EnvAuthConfig(
            load_dotenv=bool(environment.get('load_dotenv', True)),
            dotenv_path=environment.get('dotenv_path'),
        )
    )
    token = manager.get_github_token()
    if not token:
        hints = '; '.join(manager.get_authentication_recommendations())
        raise ConfigError(f'No GitHub token found. {hints}'.strip())
    return token


def load_config(
    path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> SyncConfig:
    """Build the run configuration: CLI overrides > environment > file > defaults."""
    ov = dict(overrides or {})
    raw = load_settings(path)
    src = _section(raw, 'source')
    gh = _section(raw, 'github')
    behavior = _section(raw, 'behavior')
    out = _section(raw, 'output')
    logging_config = _section(raw, 'logging')
    environment = _section(raw, 'environment')

    drift_policy = str(_pick(ov, 'drift_policy', behavior.get('drift_policy'), DRIFT_FLAG))
    if drift_policy not in DRIFT_POLICIES:
        raise ConfigError(f'drift_policy must be one of {", ".join(DRIFT_POLICIES)}, got {drift_policy!r}')
    page_size_raw = _pick(ov, 'page_size', behavior.get('page_size'), DEFAULT_PAGE_SIZE)
    try:
        page_size = int(page_size_raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'page_size must be an integer, got {page_size_raw!r}') from exc
    if not 1 <= page_size <= 100:
        raise ConfigError('page_size must be between 1 and 100')
    labels_any = _pick(ov, 'labels', gh.get('labels'), list(DEFAULT_LABELS))
    if isinstance(labels_any, str):
        labels = [p.strip() for p in labels_any.split(',') if p.strip()]
    elif isinstance(labels_any, (list, tuple)):
        labels = [str(p).strip() for p in labels_any if str(p).strip()]
    else:
        raise ConfigError(f'labels must be a list or a comma-separated string, got {labels_any!r}')

    workspace = resolve_workspace(_pick(ov, 'workspace', _resolve_env_var(src.get('workspace'))))
    repo = _resolve_repo(_pick(ov, 'repo', _resolve_env_var(gh.get('repo'))))
    token = _resolve_token(_pick(ov, 'token', _resolve_env_var(gh.get('token'))), environment)
    event = load_event(ov.get('event_name'), ov.get('event_path'))

    return SyncConfig(
        token=token,
        repo=repo,
        workspace=workspace,
        event=event,
        issues_dir=str(_pick(ov, 'issues_dir', src.get('issues_dir'), DEFAULT_ISSUES_DIR)),
        labels=labels,
        drift_policy=drift_policy,
        allow_reopen=bool(_pick(ov, 'allow_reopen', behavior.get('allow_reopen'), False)),
        full_scan=bool(_pick(ov, 'full_scan', behavior.get('full_scan'), False)),
        page_size=page_size,
        dry_run=bool(_pick(ov, 'dry_run', behavior.get('dry_run_default'), False)),
        api_url=str(
            _pick(ov, 'api_url', os.environ.get('ISSUESYNC_GITHUB_API'), gh.get('api_url'), DEFAULT_API_URL)
        ),
        summary_json=_pick(ov, 'summary_json', out.get('summary_json')),
        logging_json_enabled=bool(_pick(ov, 'json_logs', logging_config.get('json_enabled'), False)),
        logging_level=str(_pick(ov, 'log_level', logging_config.get('level'), 'INFO')),
    )


__all__ = ['SyncConfig', 'ConfigError', 'load_config', 'load_settings', 'resolve_workspace', 'CONFIG_DEFAULT']
