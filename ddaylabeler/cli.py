"""
D-day labeler CLI - Keep D-<n> labels on pull requests in sync with due dates.

Commands:
    run   - Relabel open PRs whose title carries a (~M/D) due date
    plan  - Show the label changes `run` would make, without applying them
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path

import click
from dotenv import load_dotenv

from . import __version__
from .config import ConfigError, LabelerConfig, get_repo_root
from .dday import plan_label_changes
from .github import GitHubClient
from .labels import update_labels

logger = logging.getLogger(__name__)


class WorkflowCommandFormatter(logging.Formatter):
    """Render warnings and errors as GitHub Actions annotations."""

    COMMANDS = {logging.WARNING: "warning", logging.ERROR: "error", logging.CRITICAL: "error"}

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = self.COMMANDS.get(record.levelno)
        if command:
            return f"::{command}::{message}"
        return message


def setup_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    if os.environ.get("GITHUB_ACTIONS") == "true":
        handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # Keep HTTP internals out of the debug output
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_config(
    repo: str | None,
    config_path: str | None,
    max_dday: int | None,
    timezone: str | None,
) -> LabelerConfig:
    repo_root = get_repo_root()
    load_dotenv()
    load_dotenv(repo_root / ".env")
    
    config = LabelerConfig.load(
        repo_root,
        config_path=Path(config_path) if config_path else None,
    )
    config = config.with_overrides(repo=repo, max_dday=max_dday, timezone=timezone)
    config.validate()
    return config


def make_client(config: LabelerConfig) -> GitHubClient:
    return GitHubClient(repo=config.repo, token=config.token, api_url=config.api_url)


async def run_labeler(config: LabelerConfig, client: GitHubClient | None = None) -> int:
    """
    Fetch PRs, plan label changes and apply them.
    
    Returns:
        Number of PRs whose labels were changed
    """
    client = client or make_client(config)
    prs = await asyncio.to_thread(client.list_pulls, config.state)
    logger.info(f"Found {len(prs)} {config.state} PRs in {config.repo}")
    
    changes = plan_label_changes(prs, now=config.now(), max_dday=config.max_dday)
    logger.info(f"Planned {len(changes)} label change(s)")
    
    updated = await update_labels(client, changes)
    return sum(1 for changed in updated if changed)


common_options = [
    click.option("--repo", help="Repository to label (owner/repo)"),
    click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to dday-labeler.yml"),
    click.option("--max-dday", type=int, default=None, help="Only label PRs due within this many days"),
    click.option("--timezone", default=None, help="IANA timezone used for 'today' (default: local)"),
]


def with_common_options(func):
    for option in reversed(common_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """D-day labeler - Sync D-<n> labels with PR title due dates."""
    setup_logging(verbose)


@main.command()
@with_common_options
def run(repo: str | None, config_path: str | None, max_dday: int | None, timezone: str | None):
    """Relabel PRs according to the (~M/D) due date in their title.
    
    Examples:
    
        dday-labeler run --repo owner/repo
        dday-labeler run --max-dday 7 --timezone Asia/Seoul
    """
    try:
        config = load_config(repo, config_path, max_dday, timezone)
        updated = asyncio.run(run_labeler(config))
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)
    
    logger.info(f"Successfully updated labels for all {updated} PRs.")
    click.echo(f"Updated labels on {updated} PR(s)")


@main.command()
@with_common_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def plan(repo: str | None, config_path: str | None, max_dday: int | None, timezone: str | None, as_json: bool):
    """Show planned label changes without applying them."""
    try:
        config = load_config(repo, config_path, max_dday, timezone)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    
    client = make_client(config)
    try:
        prs = client.list_pulls(config.state)
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)
    
    changes = plan_label_changes(prs, now=config.now(), max_dday=config.max_dday)
    
    if as_json:
        click.echo(json.dumps([asdict(change) for change in changes], indent=2))
        return
    
    if not changes:
        click.echo("No label changes needed.")
        return
    
    click.echo(f"Planned label changes ({len(changes)}):\n")
    for change in changes:
        click.echo(f"  PR #{change.number}: {change.current or '(none)'} -> {change.next or '(none)'}")


if __name__ == "__main__":
    main()
