"""Worktree removal: safety validation, single and bulk removal, dry runs."""

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from grove.config import Config
from grove.constants import (
    MAX_BULK_WORKERS,
    REASON_CANCELLED,
    REASON_MERGED,
    WARNING_CURRENT,
    WARNING_CURRENT_UNKNOWN,
    WARNING_LOCKED,
    WARNING_PATH_MISSING,
    WARNING_UNCOMMITTED,
    WARNING_UNCOMMITTED_UNKNOWN,
)
from grove.exceptions import (
    GroveError,
    UnsafeRemovalError,
    ValidationError,
    WorktreeNotFoundError,
)
from grove.logging_config import get_logger
from grove.models.removal import (
    BranchCleanup,
    BulkCriteria,
    DryRunResult,
    RemovalOutcome,
    RemovalStatus,
    RemoveFailure,
    RemoveOptions,
    RemoveResults,
    RemoveSkip,
    RemoveSummary,
    SafetyReport,
)
from grove.models.worktree import WorktreeInfo
from grove.services.branch_manager import BranchManager
from grove.services.git import GitCommandRunner, GitQueries, WorktreeService
from grove.services.safety_checker import SafetyChecker
from grove.utils.threading import get_optimal_worker_count
from grove.validation import validate_worktree_path

logger = get_logger(__name__)


@dataclass
class _CandidateOutcome:
    """Private per-candidate result, merged into RemoveResults by one reducer."""

    worktree: WorktreeInfo
    skipped_reason: Optional[str] = None
    error: Optional[str] = None
    branch_deleted: bool = False


class RemoveService:
    """Removes worktrees (and optionally their branches) without losing work."""

    def __init__(
        self,
        worktree_service: WorktreeService,
        safety_checker: SafetyChecker,
        branch_manager: BranchManager,
        config: Optional[Config] = None,
    ):
        self.worktree_service = worktree_service
        self.safety_checker = safety_checker
        self.branch_manager = branch_manager
        self.config = config or Config()

    @classmethod
    def create(
        cls, repo_path: str, config: Optional[Config] = None, cwd: Optional[str] = None
    ) -> "RemoveService":
        """Wire a RemoveService and its collaborators for one repository.

        Args:
            repo_path: Path inside the repository to operate on
            config: Configuration (defaults are used if omitted)
            cwd: Directory treated as the user's location (defaults to os.getcwd())
        """
        config = config or Config()
        runner = GitCommandRunner(
            repo_path, read_timeout=config.read_timeout, write_timeout=config.write_timeout
        )
        queries = GitQueries(runner, remote_name=config.remote_name)
        return cls(
            WorktreeService(runner, queries, cwd=cwd),
            SafetyChecker(queries, cwd=cwd),
            BranchManager(queries),
            config,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_removal(
        self, path: str, worktree: Optional[WorktreeInfo] = None
    ) -> SafetyReport:
        """Check whether a worktree can be removed without losing work.

        Fails closed: a check that cannot be completed marks the report unsafe.

        Args:
            path: Worktree directory
            worktree: Listing entry for ``path`` if the caller already has one;
                otherwise the worktrees are listed to find it
        """
        report = SafetyReport(path=path)

        if not os.path.exists(path):
            report.mark_unsafe(WARNING_PATH_MISSING.format(path=path))
            return report

        try:
            is_current = self.safety_checker.check_current_worktree(path)
        except (GroveError, OSError) as e:
            logger.debug(f"Could not check if {path} is current: {e}")
            report.mark_unsafe(WARNING_CURRENT_UNKNOWN)
        else:
            report.is_current = is_current
            if is_current:
                report.mark_unsafe(WARNING_CURRENT)

        try:
            has_uncommitted = self.safety_checker.check_uncommitted_changes(path)
        except (GroveError, OSError) as e:
            logger.debug(f"Could not check uncommitted changes in {path}: {e}")
            report.mark_unsafe(WARNING_UNCOMMITTED_UNKNOWN)
        else:
            report.has_uncommitted = has_uncommitted
            if has_uncommitted:
                report.mark_unsafe(WARNING_UNCOMMITTED)

        if worktree is None:
            worktree = self._lookup_worktree(path)
        if worktree is not None:
            if worktree.is_locked:
                report.mark_unsafe(WARNING_LOCKED)
            if worktree.branch:
                try:
                    report.branch_status = self.safety_checker.check_branch_safety(
                        worktree.branch
                    )
                except GroveError as e:
                    logger.debug(f"Could not check branch safety for {worktree.branch}: {e}")

        logger.debug(
            f"Safety validation for {path}: safe={report.can_remove_safely} "
            f"current={report.is_current} uncommitted={report.has_uncommitted} "
            f"warnings={len(report.warnings)}"
        )
        return report

    def _lookup_worktree(self, path: str) -> Optional[WorktreeInfo]:
        try:
            return self.worktree_service.find_worktree(path)
        except GroveError as e:
            logger.debug(f"Could not look up worktree {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Single removal
    # ------------------------------------------------------------------

    def remove_worktree(self, path: str, options: RemoveOptions) -> RemovalOutcome:
        """Remove one worktree.

        Returns:
            RemovalOutcome whose status is REMOVED, PARTIAL_SUCCESS (worktree
            removed, branch cleanup failed) or DRY_RUN

        Raises:
            ValidationError: bad path or options; nothing was touched
            WorktreeNotFoundError: no such worktree
            UnsafeRemovalError: safety validation failed and force was not set
            GitOperationError: git failed to remove the worktree
        """
        if not path:
            raise ValidationError("worktree path cannot be empty")
        validate_worktree_path(path)
        options.validate()

        clean_path = os.path.abspath(path)
        logger.debug(
            f"Removing worktree {clean_path} (force={options.force}, "
            f"dry_run={options.dry_run}, delete_branch={options.delete_branch})"
        )

        try:
            worktree = self.worktree_service.find_worktree(clean_path)
            listed = True
        except GroveError as e:
            logger.debug(f"Worktree listing unavailable, continuing without it: {e}")
            worktree, listed = None, False

        exists = os.path.exists(clean_path)
        if worktree is None and (listed or not exists):
            if exists:
                raise WorktreeNotFoundError(clean_path, "Not a registered worktree")
            raise WorktreeNotFoundError(clean_path)

        # Registered but the directory is gone: only metadata is left
        if not exists:
            return self._remove_orphan(worktree, options)

        if not options.force:
            report = self.validate_removal(clean_path, worktree)
            if not report.can_remove_safely:
                raise UnsafeRemovalError(clean_path, report.warnings)

        branch = worktree.branch if worktree else ""

        if options.dry_run:
            preview = self._preview(clean_path, branch, options)
            logger.debug(f"Dry run for {clean_path}: {preview}")
            return RemovalOutcome(
                path=clean_path, status=RemovalStatus.DRY_RUN, branch_name=branch, dry_run=preview
            )

        self.worktree_service.remove_worktree(
            clean_path,
            force=options.force,
            locked=bool(worktree and worktree.is_locked),
        )

        return self._finish_removal(clean_path, branch, options)

    def _remove_orphan(self, worktree: WorktreeInfo, options: RemoveOptions) -> RemovalOutcome:
        if options.dry_run:
            return RemovalOutcome(
                path=worktree.path,
                status=RemovalStatus.DRY_RUN,
                branch_name=worktree.branch,
                dry_run=self._preview(worktree.path, worktree.branch, options),
            )

        logger.info(f"Worktree directory {worktree.path} is gone, pruning its metadata")
        self.worktree_service.prune_worktrees()
        return self._finish_removal(worktree.path, worktree.branch, options)

    def _finish_removal(self, path: str, branch: str, options: RemoveOptions) -> RemovalOutcome:
        cleanup = None
        if options.delete_branch and branch:
            cleanup = self._cleanup_branch(branch, options)

        status = RemovalStatus.REMOVED
        if cleanup is not None and cleanup.failed:
            status = RemovalStatus.PARTIAL_SUCCESS

        logger.debug(f"Removal of {path} finished: {status.value}")
        return RemovalOutcome(path=path, status=status, branch_name=branch, branch_cleanup=cleanup)

    def _preview(self, path: str, branch: str, options: RemoveOptions) -> DryRunResult:
        preview = DryRunResult(worktree_path=path, branch_name=branch)
        if options.delete_branch and branch:
            can_delete, reason = self.branch_manager.can_delete_branch_automatically(branch)
            preview.would_delete_branch = can_delete
            preview.branch_deletion_reason = reason
        return preview

    def _cleanup_branch(self, branch: str, options: RemoveOptions) -> BranchCleanup:
        """Delete a removed worktree's branch. Failures are reported, never raised."""
        cleanup = BranchCleanup(branch_name=branch)

        try:
            reason = self.branch_manager.delete_branch_safely(branch)
        except Exception as e:  # worktree is already gone; report instead of raising
            logger.warning(f"Worktree removed but deleting branch {branch} failed: {e}")
            cleanup.error = str(e)
            return cleanup

        if reason is None:
            cleanup.reason = "branch does not exist locally"
            return cleanup

        cleanup.deleted = True
        cleanup.reason = reason

        if options.delete_remote:
            if reason != REASON_MERGED:
                # The remote copy is what keeps an unmerged branch's commits alive
                logger.info(f"Keeping remote branch for {branch}: {reason}")
            else:
                try:
                    cleanup.remote_deleted = self.branch_manager.delete_remote_branch(branch)
                except Exception as e:
                    logger.warning(f"Deleting remote branch {branch} failed: {e}")
                    cleanup.error = f"remote branch deletion failed: {e}"

        return cleanup

    # ------------------------------------------------------------------
    # Bulk removal
    # ------------------------------------------------------------------

    def remove_bulk(
        self,
        criteria: BulkCriteria,
        options: RemoveOptions,
        cancel_event: Optional[threading.Event] = None,
    ) -> RemoveResults:
        """Remove every worktree matching ``criteria``.

        The current worktree is never a candidate. Candidates are processed
        independently: an unsafe one is skipped, a failing one is recorded and
        the rest continue.

        Raises:
            ValidationError: bad criteria or options
            GitOperationError: worktrees could not be listed
        """
        criteria.validate()
        options.validate()

        logger.debug(f"Bulk removal of {criteria.describe()} worktrees")
        all_worktrees = self.worktree_service.list_worktrees()
        candidates = self.filter_candidates(all_worktrees, criteria)

        logger.debug(f"{len(candidates)} of {len(all_worktrees)} worktrees selected")
        if not candidates:
            return RemoveResults(summary=RemoveSummary(total=len(all_worktrees)))

        return self.remove_candidates(candidates, options, cancel_event)

    def filter_candidates(
        self,
        worktrees: Sequence[WorktreeInfo],
        criteria: BulkCriteria,
        now: Optional[datetime] = None,
    ) -> List[WorktreeInfo]:
        """Select worktrees matching the single active criterion."""
        candidates = []
        for wt in worktrees:
            # git refuses to remove the main working tree
            if wt.is_current or wt.is_main:
                continue

            if criteria.merged:
                include = wt.remote.is_merged
            elif criteria.stale:
                include = self.is_worktree_stale(wt, criteria.days_old, now)
            else:
                include = criteria.all

            if include:
                candidates.append(wt)
        return candidates

    def is_worktree_stale(
        self, wt: WorktreeInfo, days_old: int, now: Optional[datetime] = None
    ) -> bool:
        """Check if a worktree has seen no activity for ``days_old`` days.

        Uses the recorded last activity, falling back to the directory's
        modification time. When neither is available the worktree is treated
        as not stale.
        """
        now = now or datetime.now(timezone.utc)
        threshold = now - timedelta(days=days_old)

        if wt.has_activity:
            last_activity = wt.last_activity
            if last_activity.tzinfo is None:
                last_activity = last_activity.replace(tzinfo=timezone.utc)
            return last_activity < threshold

        try:
            mtime = os.stat(wt.path).st_mtime
        except OSError as e:
            logger.debug(f"No activity data for {wt.path} ({e}), treating as not stale")
            return False

        return datetime.fromtimestamp(mtime, tz=timezone.utc) < threshold

    def remove_candidates(
        self,
        candidates: Sequence[WorktreeInfo],
        options: RemoveOptions,
        cancel_event: Optional[threading.Event] = None,
    ) -> RemoveResults:
        """Remove an explicit list of worktrees with bulk semantics.

        Candidates not yet started when ``cancel_event`` is set are skipped;
        removals already running are allowed to finish.
        """
        options.validate()
        if options.dry_run:
            return self._bulk_dry_run(candidates, options)

        started = time.monotonic()
        cancel_event = cancel_event or threading.Event()
        workers = self._worker_count(len(candidates))
        logger.debug(f"Removing {len(candidates)} worktrees with {workers} workers")

        if workers == 1:
            outcomes = []
            for wt in candidates:
                try:
                    outcomes.append(self._process_candidate(wt, options, cancel_event))
                except KeyboardInterrupt:
                    cancel_event.set()
                    outcomes.append(_CandidateOutcome(wt, error="interrupted"))
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._process_candidate, wt, options, cancel_event)
                    for wt in candidates
                ]
                try:
                    wait(futures)
                except KeyboardInterrupt:
                    logger.warning("Interrupted: finishing running removals, skipping the rest")
                    cancel_event.set()
                    try:
                        wait(futures)
                    except KeyboardInterrupt:
                        logger.warning("Interrupted again: dropping queued removals")
                        executor.shutdown(wait=False, cancel_futures=True)
            # Leaving the pool waits for removals already running
            outcomes = [
                _CandidateOutcome(wt, skipped_reason=REASON_CANCELLED)
                if future.cancelled()
                else future.result()
                for wt, future in zip(candidates, futures)
            ]

        results = self._reduce(outcomes)
        results.summary.duration = time.monotonic() - started

        logger.debug(
            f"Bulk removal done: removed={results.summary.removed} "
            f"skipped={results.summary.skipped} failed={results.summary.failed}"
        )
        return results

    def _worker_count(self, jobs: int) -> int:
        if self.config.sequential or self.config.debug:
            return 1
        return get_optimal_worker_count(self.config.workers, cap=MAX_BULK_WORKERS, jobs=jobs)

    def _process_candidate(
        self, wt: WorktreeInfo, options: RemoveOptions, cancel_event: threading.Event
    ) -> _CandidateOutcome:
        if cancel_event.is_set():
            return _CandidateOutcome(wt, skipped_reason=REASON_CANCELLED)

        if not options.force:
            try:
                report = self.validate_removal(wt.path, wt)
            except Exception as e:
                return _CandidateOutcome(wt, skipped_reason=f"Safety validation failed: {e}")
            if not report.can_remove_safely:
                return _CandidateOutcome(wt, skipped_reason="; ".join(report.warnings))

        try:
            if os.path.exists(wt.path):
                self.worktree_service.remove_worktree(
                    wt.path, force=options.force, locked=wt.is_locked
                )
            else:
                self.worktree_service.prune_worktrees()
        except Exception as e:
            logger.warning(f"Failed to remove worktree {wt.path}: {e}")
            return _CandidateOutcome(wt, error=str(e))

        outcome = _CandidateOutcome(wt)
        if options.delete_branch and wt.branch:
            cleanup = self._cleanup_branch(wt.branch, options)
            outcome.branch_deleted = cleanup.deleted
        return outcome

    @staticmethod
    def _reduce(outcomes: Sequence[_CandidateOutcome]) -> RemoveResults:
        results = RemoveResults()
        branches_deleted = 0

        for outcome in outcomes:
            wt = outcome.worktree
            if outcome.skipped_reason is not None:
                results.skipped.append(RemoveSkip(wt.path, outcome.skipped_reason, wt.branch))
            elif outcome.error is not None:
                results.failed.append(RemoveFailure(wt.path, outcome.error, wt.branch))
            else:
                results.removed.append(wt.path)
                if outcome.branch_deleted:
                    branches_deleted += 1

        results.summary = RemoveSummary(
            total=len(outcomes),
            removed=len(results.removed),
            skipped=len(results.skipped),
            failed=len(results.failed),
            branches_deleted=branches_deleted,
        )
        return results

    def _bulk_dry_run(
        self, candidates: Sequence[WorktreeInfo], options: RemoveOptions
    ) -> RemoveResults:
        results = RemoveResults()
        for wt in candidates:
            results.removed.append(wt.path)
            results.dry_run.append(self._preview(wt.path, wt.branch, options))
            logger.debug(f"Would remove {wt.path} (branch: {wt.branch or 'detached'})")

        results.summary = RemoveSummary(total=len(candidates), removed=len(candidates))
        return results
