"""Read-only git queries shared by the safety checker, branch manager and lister."""

import os
from threading import Lock
from typing import Optional

from grove.constants import DEFAULT_BRANCH_CANDIDATES, DEFAULT_REMOTE
from grove.exceptions import DefaultBranchNotFoundError, GitOperationError
from grove.logging_config import get_logger
from grove.services.git.runner import GitCommandRunner

logger = get_logger(__name__)


class GitQueries:
    """Branch and repository queries answered through a GitCommandRunner."""

    def __init__(self, runner: GitCommandRunner, remote_name: str = DEFAULT_REMOTE):
        """Initialize the query service.

        Args:
            runner: Command runner bound to the repository
            remote_name: Remote used for push and default-branch lookups
        """
        self.runner = runner
        self.remote_name = remote_name
        self._default_branch: Optional[str] = None
        self._cache_lock = Lock()

    def clear_cache(self):
        with self._cache_lock:
            self._default_branch = None

    def get_default_branch(self) -> str:
        """Resolve the repository's default branch.

        Tries, in order: the remote's symbolic HEAD, the ``HEAD branch:`` line
        of ``git remote show``, and the first local candidate that resolves.

        Raises:
            DefaultBranchNotFoundError: every strategy failed
        """
        with self._cache_lock:
            if self._default_branch is not None:
                return self._default_branch

        branch = (
            self._default_from_symbolic_ref()
            or self._default_from_remote_show()
            or self._default_from_candidates()
        )
        if not branch:
            raise DefaultBranchNotFoundError()

        logger.debug(f"Default branch resolved to {branch}")
        with self._cache_lock:
            self._default_branch = branch
        return branch

    def _default_from_symbolic_ref(self) -> Optional[str]:
        try:
            output = self.runner.execute_quiet(
                "symbolic-ref", f"refs/remotes/{self.remote_name}/HEAD"
            )
        except GitOperationError:
            return None
        ref = output.strip()
        return ref.rsplit("/", 1)[-1] if ref else None

    def _default_from_remote_show(self) -> Optional[str]:
        try:
            output = self.runner.execute_quiet("remote", "show", self.remote_name)
        except GitOperationError:
            return None
        for line in output.splitlines():
            if "HEAD branch:" in line:
                name = line.split("HEAD branch:", 1)[1].strip()
                # Remote without a HEAD reports "(unknown)"
                if name and not name.startswith("("):
                    return name
        return None

    def _default_from_candidates(self) -> Optional[str]:
        for candidate in DEFAULT_BRANCH_CANDIDATES:
            try:
                self.runner.execute_quiet("rev-parse", "--verify", "--quiet", candidate)
                return candidate
            except GitOperationError:
                continue
        return None

    def _default_branch_ref(self) -> str:
        """Ref to compare against: the local default branch, else its remote copy."""
        default_branch = self.get_default_branch()
        if self.branch_exists(default_branch):
            return default_branch
        return f"{self.remote_name}/{default_branch}"

    def is_ancestor(self, ref: str, target: str) -> bool:
        """True if ``ref`` is reachable from ``target``.

        Raises:
            GitOperationError: either ref is invalid or git failed otherwise
        """
        try:
            self.runner.execute_quiet("merge-base", "--is-ancestor", ref, target)
            return True
        except GitOperationError as e:
            # --is-ancestor exits 1 for "no"; anything else is a real error
            if e.status == 1:
                return False
            raise

    def is_branch_merged(self, branch: str) -> bool:
        """Check if a branch's tip is an ancestor of the default branch.

        This is the single merge test used everywhere in grove.
        """
        default_branch = self.get_default_branch()
        # A branch cannot be merged into itself
        if branch in (default_branch, f"{self.remote_name}/{default_branch}"):
            logger.debug(f"Skipping merge check: {branch} is the default branch")
            return False
        return self.is_ancestor(branch, self._default_branch_ref())

    def branch_exists(self, branch: str) -> bool:
        output = self.runner.execute_quiet("branch", "--list", branch)
        return output.strip() != ""

    def has_remote_branch(self, branch: str) -> bool:
        """Check if ``<remote>/<branch>`` exists as a remote-tracking ref."""
        output = self.runner.execute_quiet("branch", "-r", "--list", f"{self.remote_name}/{branch}")
        return output.strip() != ""

    def current_branch(self) -> Optional[str]:
        """Name of the checked-out branch, or None for detached HEAD."""
        output = self.runner.execute_quiet("rev-parse", "--abbrev-ref", "HEAD").strip()
        return None if output in ("", "HEAD") else output

    def upstream_branch(self, branch: str) -> Optional[str]:
        """The upstream a local branch tracks, or None."""
        try:
            output = self.runner.execute_quiet(
                "rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"
            )
        except GitOperationError:
            return None
        return output.strip() or None

    def is_upstream_merged(self, branch: str) -> bool:
        upstream = self.upstream_branch(branch)
        if not upstream:
            return False
        return self.is_branch_merged(upstream)

    def show_toplevel(self, directory: str) -> Optional[str]:
        """Top-level directory of the work tree containing ``directory``, or None."""
        try:
            output = self.runner.execute_quiet("-C", directory, "rev-parse", "--show-toplevel")
        except GitOperationError as e:
            logger.debug(f"{directory} is not inside a work tree: {e}")
            return None
        toplevel = output.strip()
        return os.path.realpath(toplevel) if toplevel else None

    def last_commit_time(self, worktree_path: str) -> Optional[int]:
        """Unix committer timestamp of a worktree's HEAD, or None."""
        try:
            output = self.runner.execute_quiet("-C", worktree_path, "log", "-1", "--format=%ct")
        except GitOperationError:
            return None
        output = output.strip()
        return int(output) if output.isdigit() else None
