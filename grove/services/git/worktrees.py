"""Worktree listing and removal for grove."""

import os
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

from grove.exceptions import GitOperationError
from grove.logging_config import get_logger
from grove.models.worktree import RemoteStatus, WorktreeInfo
from grove.services.git.queries import GitQueries
from grove.services.git.runner import GitCommandRunner

logger = get_logger(__name__)


def normalize_path(path: str) -> str:
    """Absolute, symlink-resolved form used for every path comparison."""
    return os.path.realpath(os.path.abspath(path))


class WorktreeService:
    """Service for listing and removing git worktrees."""

    def __init__(
        self,
        runner: GitCommandRunner,
        queries: Optional[GitQueries] = None,
        cwd: Optional[str] = None,
    ):
        """Initialize the worktree service.

        Args:
            runner: Command runner bound to the repository
            queries: Shared git queries (created from ``runner`` if omitted)
            cwd: Directory used to decide which worktree is current
                (defaults to the process working directory)
        """
        self.runner = runner
        self.queries = queries or GitQueries(runner)
        self.cwd = cwd
        self._worktree_info: Optional[List[WorktreeInfo]] = None
        self._cache_lock = Lock()
        self._prune_lock = Lock()

    def clear_cache(self):
        """Clear the worktree information cache."""
        with self._cache_lock:
            self._worktree_info = None

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Get detailed information about all worktrees.

        Returns:
            List of WorktreeInfo objects, main worktree first

        Raises:
            GitOperationError: ``git worktree list`` failed
        """
        with self._cache_lock:
            if self._worktree_info is not None:
                return list(self._worktree_info)

        output = self.runner.execute("worktree", "list", "--porcelain")
        current_path = self.queries.show_toplevel(self.cwd or os.getcwd())

        worktrees = []
        for entry in self._parse_porcelain(output):
            if entry.get("bare"):
                continue
            worktrees.append(self._build_info(entry, current_path))

        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")

        with self._cache_lock:
            self._worktree_info = worktrees
        return list(worktrees)

    @staticmethod
    def _parse_porcelain(output: str) -> List[Dict[str, Any]]:
        """Split ``git worktree list --porcelain`` output into entries.

        Format:
            worktree /path/to/worktree
            HEAD commit_sha
            branch refs/heads/branch-name   (or "detached")
            locked [reason]                 (optional)
            prunable [reason]               (optional)
            (blank line between worktrees)
        """
        entries: List[Dict[str, Any]] = []
        current: Dict[str, Any] = {}

        for line in output.split("\n"):
            line = line.strip()
            if not line:
                if current.get("path"):
                    entries.append(current)
                current = {}
                continue

            key, _, value = line.partition(" ")
            if key == "worktree":
                current = {"path": value, "is_main": not entries}
            elif key == "HEAD":
                current["HEAD"] = value
            elif key == "branch":
                if value.startswith("refs/heads/"):
                    current["branch"] = value[len("refs/heads/"):]
                else:
                    current["branch"] = ""
            elif key == "detached":
                current["branch"] = ""
            elif key == "bare":
                current["bare"] = True
            elif key == "locked":
                current["locked"] = True
            elif key == "prunable":
                current["prunable"] = True

        # Last entry may lack a trailing blank line
        if current.get("path"):
            entries.append(current)
        return entries

    def _build_info(self, entry: Dict[str, Any], current_path: Optional[str]) -> WorktreeInfo:
        path = entry["path"]
        branch = entry.get("branch", "")
        is_orphaned = bool(entry.get("prunable")) or not os.path.exists(path)

        last_activity = None
        if not is_orphaned:
            timestamp = self.queries.last_commit_time(path)
            if timestamp:
                last_activity = datetime.fromtimestamp(timestamp, tz=timezone.utc)

        return WorktreeInfo(
            path=path,
            branch=branch,
            commit_sha=entry.get("HEAD", ""),
            is_main=entry.get("is_main", False),
            is_current=current_path is not None and normalize_path(path) == current_path,
            is_locked=bool(entry.get("locked")),
            is_orphaned=is_orphaned,
            last_activity=last_activity,
            remote=self._remote_status(branch),
        )

    def _remote_status(self, branch: str) -> RemoteStatus:
        if not branch:
            return RemoteStatus()

        has_remote = False
        is_merged = False
        try:
            has_remote = self.queries.has_remote_branch(branch)
        except GitOperationError as e:
            logger.debug(f"Could not check remote for {branch}: {e}")
        try:
            is_merged = self.queries.is_branch_merged(branch)
        except GitOperationError as e:
            logger.debug(f"Could not check merge status for {branch}: {e}")
        return RemoteStatus(has_remote=has_remote, is_merged=is_merged)

    def find_worktree(self, path: str) -> Optional[WorktreeInfo]:
        """Find the registered worktree at ``path``, if any."""
        target = normalize_path(path)
        for wt in self.list_worktrees():
            if normalize_path(wt.path) == target:
                return wt
        return None

    def remove_worktree(self, path: str, force: bool = False, locked: bool = False) -> None:
        """Remove a worktree at the specified path.

        Args:
            path: Path to the worktree directory
            force: Remove even if the working tree is dirty
            locked: The worktree is locked; with ``force`` git needs the flag twice

        Raises:
            GitOperationError: git refused or failed to remove the worktree
        """
        args = ["worktree", "remove", path]
        if force:
            args.append("--force")
            if locked:
                args.append("--force")

        try:
            self.runner.execute(*args, write=True)
        finally:
            # The listing may have changed even when git reports an error
            self.clear_cache()
        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self) -> None:
        """Prune metadata of worktrees whose directories are gone."""
        try:
            with self._prune_lock:
                self.runner.execute("worktree", "prune", write=True)
        finally:
            self.clear_cache()
        logger.info("Pruned orphaned worktree metadata")
