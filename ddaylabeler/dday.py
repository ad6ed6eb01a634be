"""
Due-date parsing and D-day label planning.

A PR title may carry a due-date marker such as ``Fix login (~12/25)``.
The functions here turn that marker into a date, count the days left
until it, and work out which ``D-<n>`` label each PR should carry.

Everything in this module is pure: pass ``now`` explicitly to pin the
reference moment, otherwise the host's local time is used.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)

DUE_DATE_PATTERN = re.compile(r"\(~(\d{1,2})/(\d{1,2})\)")
# Signed so that overdue labels like "D--3" are still recognized
DDAY_LABEL_PATTERN = re.compile(r"^D-(-?\d+)$")
DEFAULT_MAX_DDAY = 10


class PullRequestLike(Protocol):
    number: int
    title: str
    labels: list[str]


@dataclass
class LabelChange:
    """Label delta for one PR. ``None`` means no label on that side."""
    number: int
    current: str | None
    next: str | None

    @property
    def is_noop(self) -> bool:
        return self.current == self.next


def extract_due_date(title: str, now: datetime | None = None) -> date | None:
    """
    Parse the ``(~M/D)`` marker in a title into a calendar date.
    
    The date is placed in the current year, or the next one when it
    falls strictly before ``now``. Components that do not form a real
    date (``13/45``, ``4/31``) are rejected rather than normalized.
    
    Returns:
        The due date, or None if there is no usable marker
    """
    match = DUE_DATE_PATTERN.search(title)
    if not match:
        return None
    
    if now is None:
        now = datetime.now()
    month, day = int(match.group(1)), int(match.group(2))
    
    try:
        due = datetime(now.year, month, day)
        if due < now:
            due = due.replace(year=now.year + 1)
    except ValueError:
        logger.warning(f"Ignoring invalid due date {month}/{day} in title: {title!r}")
        return None
    
    return due.date()


def calculate_dday(due_date: date, now: datetime | None = None) -> int:
    """Days from today (midnight) until ``due_date``, rounded up."""
    if now is None:
        now = datetime.now()
    today = datetime(now.year, now.month, now.day)
    due = datetime(due_date.year, due_date.month, due_date.day)
    return math.ceil((due - today) / timedelta(days=1))


def format_dday_label(dday: int) -> str:
    # Overdue counts are rendered as-is, e.g. "D--3"
    return f"D-{dday}"


def find_dday_label(labels: Iterable[str]) -> str | None:
    """Return the first label shaped like ``D-<n>``."""
    for name in labels:
        if DDAY_LABEL_PATTERN.match(name):
            return name
    return None


def plan_label_change(
    pr: PullRequestLike,
    now: datetime | None = None,
    max_dday: int = DEFAULT_MAX_DDAY,
) -> LabelChange | None:
    """
    Decide the label change for a single PR.
    
    PRs without a due date, or due further out than ``max_dday``, are left
    alone even if they still carry an old D-label.
    """
    if now is None:
        now = datetime.now()
    
    due_date = extract_due_date(pr.title, now=now)
    if due_date is None:
        logger.debug(f"PR #{pr.number} has no due date")
        return None
    
    dday = calculate_dday(due_date, now=now)
    logger.debug(f"PR #{pr.number} due {due_date.isoformat()} (D-day {dday})")
    if dday > max_dday:
        return None
    
    change = LabelChange(
        number=pr.number,
        current=find_dday_label(pr.labels),
        next=format_dday_label(dday),
    )
    return None if change.is_noop else change


def plan_label_changes(
    prs: Iterable[PullRequestLike],
    now: datetime | None = None,
    max_dday: int = DEFAULT_MAX_DDAY,
) -> list[LabelChange]:
    """Plan label changes for every PR, keeping input order."""
    if now is None:
        now = datetime.now()
    
    changes = []
    for pr in prs:
        change = plan_label_change(pr, now=now, max_dday=max_dday)
        if change is not None:
            changes.append(change)
    return changes
