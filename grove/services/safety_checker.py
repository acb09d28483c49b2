"""Safety checks that decide whether a worktree can be removed without losing work."""

import os
from typing import Optional

from grove.constants import REASON_MERGED, REASON_PUSHED, REASON_UNMERGED
from grove.exceptions import (
    ErrorKind,
    GitOperationError,
    ValidationError,
    WorktreeNotFoundError,
)
from grove.logging_config import get_logger
from grove.models.removal import BranchSafetyStatus
from grove.models.worktree import WorktreeStatus
from grove.services.git.queries import GitQueries
from grove.services.git.worktrees import normalize_path

logger = get_logger(__name__)


def parse_porcelain_status(output: str) -> WorktreeStatus:
    """Count staged, modified and untracked entries in ``status --porcelain`` output.

    Each line is ``XY path`` where X is the index column and Y the working
    tree column; ``??`` marks an untracked file.
    """
    staged = modified = untracked = 0
    for line in output.splitlines():
        if len(line) < 2:
            continue

        index_status, worktree_status = line[0], line[1]
        if index_status == "?" and worktree_status == "?":
            untracked += 1
            continue
        if index_status not in (" ", "?"):
            staged += 1
        if worktree_status not in (" ", "?"):
            modified += 1

    return WorktreeStatus(staged=staged, modified=modified, untracked=untracked)


class SafetyChecker:
    """Answers three independent questions about a worktree and its branch."""

    def __init__(self, queries: GitQueries, cwd: Optional[str] = None):
        """
        Args:
            queries: Shared git queries
            cwd: Directory treated as the user's location (defaults to os.getcwd())
        """
        self.queries = queries
        self.runner = queries.runner
        self.cwd = cwd

    def get_worktree_status(self, path: str) -> WorktreeStatus:
        """Get staged/modified/untracked counts for a worktree.

        A worktree git no longer recognises (torn down underneath us) has
        nothing left to lose and is reported clean.
        """
        try:
            output = self.runner.execute_quiet("-C", path, "status", "--porcelain")
        except GitOperationError as e:
            if e.kind is ErrorKind.NOT_A_WORKTREE:
                logger.debug(f"{path} is no longer a work tree, treating as clean: {e}")
                return WorktreeStatus()
            raise
        return parse_porcelain_status(output)

    def check_uncommitted_changes(self, path: str) -> bool:
        """Check whether a worktree has uncommitted changes.

        Raises:
            ValidationError: empty path
            WorktreeNotFoundError: path does not exist
            GitOperationError: status could not be determined
        """
        if not path:
            raise ValidationError("worktree path cannot be empty")
        if not os.path.exists(path):
            raise WorktreeNotFoundError(path)

        status = self.get_worktree_status(path)
        has_uncommitted = not status.is_clean

        logger.debug(
            f"Uncommitted check for {path}: staged={status.staged} "
            f"modified={status.modified} untracked={status.untracked}"
        )
        return has_uncommitted

    def check_branch_safety(self, branch: str) -> BranchSafetyStatus:
        """Decide whether a branch can be deleted without confirmation.

        Merge and remote status are computed independently; either failing is
        logged and counted as False.
        """
        if not branch:
            raise ValidationError("branch name cannot be empty")

        status = BranchSafetyStatus(branch_name=branch)

        try:
            status.is_merged = self.queries.is_branch_merged(branch)
        except GitOperationError as e:
            logger.debug(f"Failed to check if {branch} is merged: {e}")

        try:
            status.is_pushed_to_remote = self.queries.has_remote_branch(branch)
        except GitOperationError as e:
            logger.debug(f"Failed to check remote status of {branch}: {e}")

        if status.is_merged:
            status.can_delete_auto = True
            status.reason = REASON_MERGED
        elif status.is_pushed_to_remote:
            status.can_delete_auto = True
            status.reason = REASON_PUSHED
        else:
            status.requires_confirm = True
            status.reason = REASON_UNMERGED

        logger.debug(
            f"Branch safety for {branch}: merged={status.is_merged} "
            f"pushed={status.is_pushed_to_remote} auto={status.can_delete_auto}"
        )
        return status

    def check_current_worktree(self, path: str) -> bool:
        """Check whether ``path`` is the worktree the user is standing in."""
        if not path:
            raise ValidationError("worktree path cannot be empty")

        current = self.queries.show_toplevel(self.cwd or os.getcwd())
        if current is None:
            return False

        is_current = current == normalize_path(path)
        logger.debug(f"Current worktree {current}, target {path}: is_current={is_current}")
        return is_current
