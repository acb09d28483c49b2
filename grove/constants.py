"""Shared constants for grove."""

from dataclasses import dataclass
from typing import List


# Stale worktree thresholds
DEFAULT_STALE_DAYS = 30
MINIMUM_STALE_DAYS = 1

# Command timeouts in seconds
DEFAULT_READ_TIMEOUT = 5.0
DEFAULT_WRITE_TIMEOUT = 60.0

# Upper bound on concurrent removals in a bulk run
MAX_BULK_WORKERS = 4

DEFAULT_REMOTE = "origin"

# Probed in order when the remote does not advertise a HEAD
DEFAULT_BRANCH_CANDIDATES = ("main", "master", "develop", "dev")


# Branch deletion verdicts
REASON_MERGED = "merged into default branch"
REASON_PUSHED = "pushed to remote"
REASON_TRACKING_MERGED = "tracks a merged upstream branch"
REASON_UNMERGED = "not merged and may contain unique changes"
REASON_CANCELLED = "operation cancelled"


# Safety warnings
WARNING_PATH_MISSING = "Path does not exist: {path}"
WARNING_CURRENT = "Cannot remove currently active worktree"
WARNING_CURRENT_UNKNOWN = "Could not verify if worktree is currently active"
WARNING_UNCOMMITTED = "Worktree has uncommitted changes that will be lost"
WARNING_UNCOMMITTED_UNKNOWN = "Could not verify uncommitted changes"
WARNING_LOCKED = "Worktree is locked"


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


# Columns shared by the CLI table and the TUI
COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("path", "Worktree", 40),
    ColumnDefinition("branch", "Branch", 30),
    ColumnDefinition("activity", "Last Activity", 14),
    ColumnDefinition("merged", "Merged", 8),
    ColumnDefinition("remote", "Remote", 8),
    ColumnDefinition("state", "State", 10),
]


SYMBOL_YES = "✓"
SYMBOL_NO = "✗"
SYMBOL_MARKED = "✓"
SYMBOL_UNMARKED = " "


LEGEND_TEXT = """
Legend:
✓ = Yes     ✗ = No
current  = The worktree you are in (never removed)
main     = The repository's main working tree (never removed)
orphaned = Directory is gone, only git metadata remains
locked   = Locked with 'git worktree lock'
"""
