"""Git-related services for grove."""

from .runner import GitCommandRunner
from .queries import GitQueries
from .worktrees import WorktreeService

__all__ = [
    "GitCommandRunner",
    "GitQueries",
    "WorktreeService",
]
