"""
Configuration management for the D-day labeler.

Settings are resolved once, in increasing precedence:
- built-in defaults
- dday-labeler.yml at the repository root
- environment (GITHUB_TOKEN, GITHUB_REPOSITORY, GITHUB_API_URL, DDAY_TIMEZONE)
- command-line overrides

The resulting LabelerConfig is passed explicitly through the pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .dday import DEFAULT_MAX_DDAY
from .github import GITHUB_API_BASE


CONFIG_FILENAME = "dday-labeler.yml"


class ConfigError(Exception):
    """Invalid or incomplete configuration."""


@dataclass
class LabelerConfig:
    """Complete labeler configuration."""
    repo: str | None = None  # full_name like "owner/repo"
    token: str | None = None
    api_url: str = GITHUB_API_BASE
    state: str = "open"  # open, closed, all
    max_dday: int = DEFAULT_MAX_DDAY
    timezone: str | None = None  # IANA name; None = host local time
    
    def now(self) -> datetime:
        """Current moment in the configured timezone, as a naive datetime."""
        if not self.timezone:
            return datetime.now()
        try:
            tz = ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"Unknown timezone: {self.timezone}")
        return datetime.now(tz).replace(tzinfo=None)
    
    def validate(self) -> None:
        if not self.repo:
            raise ConfigError("Repository not set (use --repo or GITHUB_REPOSITORY)")
        if not self.token:
            raise ConfigError("GitHub token not set (GITHUB_TOKEN)")
        if isinstance(self.max_dday, bool) or not isinstance(self.max_dday, int):
            raise ConfigError(f"max_dday must be an integer, got {self.max_dday!r}")
        if self.timezone:
            self.now()  # rejects unknown zones
    
    def with_overrides(self, **overrides: Any) -> "LabelerConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
    
    @classmethod
    def load(
        cls,
        repo_root: Path,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "LabelerConfig":
        """Load configuration from the repo root directory and environment."""
        config = cls()
        
        path = config_path or repo_root / CONFIG_FILENAME
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            config = cls._parse_file_config(data)
        elif config_path is not None:
            raise ConfigError(f"Config file not found: {config_path}")
        
        return config._apply_environ(os.environ if environ is None else environ)
    
    @classmethod
    def _parse_file_config(cls, data: dict[str, Any]) -> "LabelerConfig":
        """Parse the YAML configuration dictionary."""
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")
        
        # Tokens are read from the environment only
        return cls(
            repo=data.get("repo"),
            api_url=data.get("api_url", GITHUB_API_BASE),
            state=data.get("state", "open"),
            max_dday=data.get("max_dday", DEFAULT_MAX_DDAY),
            timezone=data.get("timezone"),
        )
    
    def _apply_environ(self, environ: Mapping[str, str]) -> "LabelerConfig":
        return self.with_overrides(
            token=environ.get("GITHUB_TOKEN") or None,
            repo=environ.get("GITHUB_REPOSITORY") or None,
            api_url=environ.get("GITHUB_API_URL") or None,
            timezone=environ.get("DDAY_TIMEZONE") or None,
        )


def get_repo_root() -> Path:
    """Find the repository root (directory containing .git)."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    # No .git found, use current directory
    return Path.cwd()
