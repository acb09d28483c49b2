"""Worktree data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RemoteStatus:
    """Remote-side facts about a worktree's branch."""

    has_remote: bool = False
    is_merged: bool = False


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a git worktree.

    Instances are produced by the worktree lister and are read-only for the
    rest of the program.
    """

    path: str
    branch: str  # Empty for detached HEAD
    commit_sha: str = ""
    is_main: bool = False  # Is this the main working tree?
    is_current: bool = False  # Does the process run inside it?
    is_locked: bool = False
    is_orphaned: bool = False  # Directory missing?
    last_activity: Optional[datetime] = None
    remote: RemoteStatus = field(default_factory=RemoteStatus)

    @property
    def is_detached(self) -> bool:
        return not self.branch

    @property
    def has_activity(self) -> bool:
        """True when a non-zero last activity timestamp was recorded."""
        return self.last_activity is not None and self.last_activity.timestamp() > 0

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        branch = self.branch or "(detached)"
        return f"{branch} @ {self.path}{main_marker} [{status}]"


@dataclass(frozen=True)
class WorktreeStatus:
    """Counts parsed from ``git status --porcelain``."""

    staged: int = 0
    modified: int = 0
    untracked: int = 0

    @property
    def is_clean(self) -> bool:
        return self.staged == 0 and self.modified == 0 and self.untracked == 0
