"""Formatting utilities for grove.

- date: Date, age and duration formatting
- worktree: Worktree table cells
- removal: Removal results and confirmations
"""

# Date formatters
from .date import format_age, format_date, format_duration

# Worktree formatters
from .worktree import (
    format_branch,
    format_flag,
    format_path,
    format_worktree_state,
    is_protected,
)

# Removal formatters
from .removal import (
    format_branch_cleanup,
    format_dry_run_item,
    format_removal_confirmation_items,
    format_success_rate,
)

__all__ = [
    # Date
    "format_date",
    "format_age",
    "format_duration",
    # Worktree
    "format_branch",
    "format_flag",
    "format_path",
    "format_worktree_state",
    "is_protected",
    # Removal
    "format_branch_cleanup",
    "format_dry_run_item",
    "format_removal_confirmation_items",
    "format_success_rate",
]
