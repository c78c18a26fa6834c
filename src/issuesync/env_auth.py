"""Environment-based authentication for issuesync.

Resolves the GitHub token from environment variables (including the
``repo-token`` action input) and optional ``.env`` files.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

# GitHub Actions exposes `with: repo-token:` as INPUT_REPO-TOKEN; some runners
# normalize the hyphen to an underscore.
ACTION_INPUT_VARS = ("INPUT_REPO-TOKEN", "INPUT_REPO_TOKEN")


@dataclass
class EnvAuthConfig:
    """Configuration for environment-based authentication."""

    load_dotenv: bool = True
    dotenv_path: str | None = None
    github_token_var: str = "GITHUB_TOKEN"
    alternatives: Sequence[str] = field(
        default_factory=lambda: (*ACTION_INPUT_VARS, "GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GITHUB_PAT")
    )


class EnvironmentAuthManager:
    """Manages authentication through environment variables and .env files."""

    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self._dotenv_loaded = False

        if config.load_dotenv:
            self._load_dotenv()

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def _load_dotenv(self) -> None:
        """Load .env file if available; existing variables win."""
        if self.config.dotenv_path:
            candidates = [Path(self.config.dotenv_path)]
        else:
            candidates = [Path(p) for p in (".env", ".env.local")]
        for env_file in candidates:
            if env_file.is_file():
                load_dotenv(str(env_file), override=False)
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_file}")
                return

    def get_github_token(self) -> str | None:
        """Get GitHub token from environment variables."""
        for var in (self.config.github_token_var, *self.config.alternatives):
            raw = os.getenv(var)
            if raw and raw.strip():
                self.logger.debug(f"Found GitHub token in {var}")
                return raw.strip()
        return None

    def is_online_environment(self) -> bool:
        """Detect if running inside CI (GitHub Actions or another runner)."""
        for indicator in ("GITHUB_ACTIONS", "CI"):
            if os.getenv(indicator):
                self.logger.debug(f"Detected CI environment: {indicator}")
                return True
        return False

    def get_authentication_recommendations(self) -> list[str]:
        """Get authentication setup recommendations based on environment."""
        if self.get_github_token():
            return []
        if self.is_online_environment():
            return [
                "Pass the token to the step: env: GITHUB_TOKEN: ${{ secrets.GITHUB_TOKEN }}",
                "Grant the workflow 'issues: write' permission",
            ]
        return [
            "Set GITHUB_TOKEN environment variable",
            "Or create .env file with GITHUB_TOKEN=your_token",
        ]


def create_env_auth_manager(config: EnvAuthConfig | None = None) -> EnvironmentAuthManager:
    """Factory function to create environment authentication manager."""
    if config is None:
        config = EnvAuthConfig()
    return EnvironmentAuthManager(config)


__all__ = ["EnvAuthConfig", "EnvironmentAuthManager", "create_env_auth_manager"]
