"""Branch cleanup for worktrees that have been removed."""

from threading import Lock
from typing import Optional, Tuple

from grove.constants import (
    REASON_MERGED,
    REASON_PUSHED,
    REASON_TRACKING_MERGED,
    REASON_UNMERGED,
)
from grove.exceptions import (
    BranchNotDeletableError,
    CurrentBranchError,
    GitOperationError,
    ValidationError,
)
from grove.logging_config import get_logger
from grove.services.git.queries import GitQueries
from grove.validation import validate_branch_name

logger = get_logger(__name__)


class BranchManager:
    """Decides whether a branch may be deleted automatically, and deletes it."""

    def __init__(self, queries: GitQueries):
        self.queries = queries
        self.runner = queries.runner
        # Local branch deletions rewrite shared refs; keep them one at a time
        self._ref_lock = Lock()

    @property
    def remote_name(self) -> str:
        return self.queries.remote_name

    def get_default_branch(self) -> str:
        """Resolve the default branch (see GitQueries.get_default_branch)."""
        return self.queries.get_default_branch()

    def can_delete_branch_automatically(self, branch: str) -> Tuple[bool, str]:
        """Decide if a branch can be deleted without losing work.

        Checks run in priority order and the first match wins, so a branch
        that is both merged and pushed reports the merge:

        1. merged into the default branch
        2. exists on the remote (its commits survive a local delete)
        3. tracks an upstream branch that is itself merged

        Returns:
            Tuple of (can_delete, reason)
        """
        try:
            validate_branch_name(branch)
        except ValidationError as e:
            return False, str(e)

        checks = (
            (self.queries.is_branch_merged, REASON_MERGED),
            (self.queries.has_remote_branch, REASON_PUSHED),
            (self.queries.is_upstream_merged, REASON_TRACKING_MERGED),
        )
        for check, reason in checks:
            try:
                if check(branch):
                    return True, reason
            except GitOperationError as e:
                logger.debug(f"Check '{reason}' failed for {branch}, trying next: {e}")

        return False, REASON_UNMERGED

    def delete_branch_safely(self, branch: str) -> Optional[str]:
        """Delete a local branch after confirming no work would be lost.

        Returns:
            The approval reason, or None if the branch did not exist locally

        Raises:
            ValidationError: invalid branch name
            CurrentBranchError: the branch is checked out here
            BranchNotDeletableError: the branch may hold unique work
            GitOperationError: git failed to delete the branch
        """
        validate_branch_name(branch)

        if not self.queries.branch_exists(branch):
            logger.debug(f"Branch {branch} does not exist locally, nothing to delete")
            return None

        if self.queries.current_branch() == branch:
            raise CurrentBranchError(branch)

        can_delete, reason = self.can_delete_branch_automatically(branch)
        if not can_delete:
            raise BranchNotDeletableError(branch, reason)

        # -D: the merge judgement above replaces git's own "not fully merged" check
        with self._ref_lock:
            self.runner.execute("branch", "-D", branch, write=True)

        logger.info(f"Deleted branch {branch} ({reason})")
        return reason

    def delete_remote_branch(self, branch: str) -> bool:
        """Delete ``branch`` on the remote.

        Returns:
            True if the remote branch was deleted, False if it did not exist
        """
        validate_branch_name(branch)

        if not self.queries.has_remote_branch(branch):
            logger.debug(f"Remote branch {self.remote_name}/{branch} does not exist, skipping")
            return False

        self.runner.execute("push", self.remote_name, "--delete", branch, write=True)
        logger.info(f"Deleted remote branch {self.remote_name}/{branch}")
        return True
