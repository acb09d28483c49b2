"""Worktree row formatting shared by the CLI table and the TUI."""

import os
from typing import Optional

from grove.constants import SYMBOL_NO, SYMBOL_YES
from grove.models.worktree import WorktreeInfo


def format_flag(value: bool) -> str:
    return SYMBOL_YES if value else SYMBOL_NO


def format_branch(wt: WorktreeInfo) -> str:
    """Branch name, or a short commit for a detached HEAD."""
    if wt.branch:
        return wt.branch
    if wt.commit_sha:
        return f"({wt.commit_sha[:8]})"
    return "(detached)"


def format_path(path: str, base: Optional[str] = None) -> str:
    """
    Shorten a worktree path for display.

    Paths below ``base`` are shown relative to it, paths in the home
    directory with a leading "~".
    """
    if base:
        try:
            relative = os.path.relpath(path, base)
        except ValueError:
            # Different drives on Windows
            relative = None
        if relative and not relative.startswith(".."):
            return relative

    home = os.path.expanduser("~")
    if path == home or path.startswith(home + os.sep):
        return "~" + path[len(home):]
    return path


def format_worktree_state(wt: WorktreeInfo) -> str:
    """
    Summarize the flags that keep a worktree from being a plain candidate.

    Returns:
        Comma separated states: current, main, orphaned, locked; "" if none
    """
    states = []
    if wt.is_current:
        states.append("current")
    if wt.is_main:
        states.append("main")
    if wt.is_orphaned:
        states.append("orphaned")
    if wt.is_locked:
        states.append("locked")
    return ", ".join(states)


def is_protected(wt: WorktreeInfo) -> bool:
    """Current and main worktrees are never offered for removal."""
    return wt.is_current or wt.is_main
