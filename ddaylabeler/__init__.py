"""
D-day labeler - Label pull requests with the days left until their due date.

A PR titled ``Ship search (~3/14)`` gets a ``D-<n>`` label once the date
is within ten days, and the label is refreshed on every run.

Usage:
    dday-labeler run     # Update labels on open PRs
    dday-labeler plan    # Preview label changes
"""

__version__ = "0.1.0"
