"""
Apply planned D-day label changes to pull requests.

All PRs are updated concurrently on one event loop. The blocking HTTP
calls of GitHubClient run in worker threads via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from .dday import LabelChange

logger = logging.getLogger(__name__)


class LabelMutator(Protocol):
    def add_labels(self, number: int, labels: list[str]) -> object: ...

    def remove_label(self, number: int, label: str) -> object: ...


class LabelSyncError(Exception):
    """One or more PRs could not be relabeled."""
    def __init__(self, failures: list[tuple[int, BaseException]]):
        self.failures = failures
        details = "; ".join(f"PR #{number}: {error}" for number, error in failures)
        super().__init__(f"Failed to update labels for {len(failures)} PR(s): {details}")


async def update_label(client: LabelMutator, change: LabelChange) -> bool:
    """
    Bring one PR's D-label in line with ``change``.
    
    Returns:
        True if a label call was made, False for a no-op change
    """
    number, current, next_label = change.number, change.current, change.next
    
    if not current and next_label:
        try:
            await asyncio.to_thread(client.add_labels, number, [next_label])
        except Exception as e:
            logger.warning(f"Failed to add label for PR #{number}: {e}")
            raise
        logger.info(f'Successfully added label "{next_label}" to PR #{number}')
        return True
    
    if current != next_label:
        calls = []
        if current:
            calls.append(asyncio.to_thread(client.remove_label, number, current))
        if next_label:
            calls.append(asyncio.to_thread(client.add_labels, number, [next_label]))
        
        results = await asyncio.gather(*calls, return_exceptions=True)
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.warning(f"Failed to update label for PR #{number}: {errors[0]}")
            raise errors[0]
        logger.info(f'Successfully updated label for PR #{number} from "{current}" to "{next_label}"')
        return True
    
    return False


async def update_labels(client: LabelMutator, changes: list[LabelChange]) -> list[bool]:
    """
    Apply every change concurrently and wait for all of them to settle.
    
    Raises:
        LabelSyncError: if any PR failed, after the rest have finished
    """
    results = await asyncio.gather(
        *(update_label(client, change) for change in changes),
        return_exceptions=True,
    )
    
    failures = [
        (change.number, result)
        for change, result in zip(changes, results)
        if isinstance(result, BaseException)
    ]
    if failures:
        raise LabelSyncError(failures)
    
    return list(results)
