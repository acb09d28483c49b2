"""Tests for single worktree removal through RemoveService"""
import os
import shutil
from pathlib import Path
from unittest.mock import Mock

import pytest

from grove.config import Config
from grove.constants import (
    REASON_MERGED,
    REASON_PUSHED,
    WARNING_CURRENT,
    WARNING_CURRENT_UNKNOWN,
    WARNING_LOCKED,
    WARNING_UNCOMMITTED,
    WARNING_UNCOMMITTED_UNKNOWN,
)
from grove.exceptions import (
    ErrorKind,
    GitOperationError,
    UnsafeRemovalError,
    ValidationError,
    WorktreeNotFoundError,
)
from grove.models.removal import BranchSafetyStatus, RemovalStatus, RemoveOptions
from grove.models.worktree import WorktreeInfo
from grove.services.branch_manager import BranchManager
from grove.services.git.worktrees import WorktreeService
from grove.services.removal_service import RemoveService
from grove.services.safety_checker import SafetyChecker


@pytest.fixture
def service(repo_with_worktrees, config):
    """RemoveService for the fixture repository, run from the main worktree."""
    return RemoveService.create(repo_with_worktrees.main, config, cwd=repo_with_worktrees.main)


@pytest.fixture
def mocked_service(temp_dir):
    """RemoveService with mocked collaborators around one clean worktree on disk."""
    path = temp_dir / "wt"
    path.mkdir()
    worktree = WorktreeInfo(path=str(path), branch="feature")

    worktree_service = Mock(spec=WorktreeService)
    worktree_service.find_worktree = Mock(return_value=worktree)
    safety_checker = Mock(spec=SafetyChecker)
    safety_checker.check_current_worktree = Mock(return_value=False)
    safety_checker.check_uncommitted_changes = Mock(return_value=False)
    safety_checker.check_branch_safety = Mock(
        return_value=BranchSafetyStatus(branch_name="feature", reason=REASON_MERGED)
    )
    branch_manager = Mock(spec=BranchManager)

    service = RemoveService(worktree_service, safety_checker, branch_manager, Config())
    service.test_path = str(path)
    return service


def branch_exists(repo, branch):
    return bool(repo.git.branch("--list", branch).strip())


class TestValidateRemoval:
    """Test safety validation."""

    def test_clean_worktree_is_safe(self, service, repo_with_worktrees):
        report = service.validate_removal(repo_with_worktrees.merged)
        assert report.can_remove_safely
        assert not report.warnings
        assert report.branch_status.reason == REASON_MERGED

    def test_dirty_worktree_is_unsafe(self, service, repo_with_worktrees):
        report = service.validate_removal(repo_with_worktrees.dirty)
        assert not report.can_remove_safely
        assert report.has_uncommitted
        assert WARNING_UNCOMMITTED in report.warnings

    def test_current_worktree_is_unsafe(self, repo_with_worktrees, config):
        service = RemoveService.create(
            repo_with_worktrees.main, config, cwd=repo_with_worktrees.merged
        )
        report = service.validate_removal(repo_with_worktrees.merged)
        assert report.is_current
        assert WARNING_CURRENT in report.warnings

    def test_missing_path_is_unsafe(self, service, temp_dir):
        report = service.validate_removal(str(temp_dir / "missing"))
        assert not report.can_remove_safely
        assert "does not exist" in report.warnings[0]

    def test_locked_worktree_is_unsafe(self, service, repo_with_worktrees):
        repo_with_worktrees.repo.git.worktree("lock", repo_with_worktrees.merged)
        report = service.validate_removal(repo_with_worktrees.merged)
        assert WARNING_LOCKED in report.warnings

    def test_failed_checks_fail_closed(self, mocked_service):
        mocked_service.safety_checker.check_current_worktree.side_effect = OSError("cwd gone")
        mocked_service.safety_checker.check_uncommitted_changes.side_effect = GitOperationError(
            "status", kind=ErrorKind.TIMEOUT
        )

        report = mocked_service.validate_removal(mocked_service.test_path)

        assert not report.can_remove_safely
        assert report.warnings == [WARNING_CURRENT_UNKNOWN, WARNING_UNCOMMITTED_UNKNOWN]

    def test_branch_status_failure_does_not_block(self, mocked_service):
        mocked_service.safety_checker.check_branch_safety.side_effect = GitOperationError("x")
        report = mocked_service.validate_removal(mocked_service.test_path)
        assert report.can_remove_safely
        assert report.branch_status.is_empty()


class TestRemoveWorktree:
    """Test single removal against real worktrees."""

    def test_remove_clean_worktree(self, service, repo_with_worktrees):
        outcome = service.remove_worktree(repo_with_worktrees.merged, RemoveOptions())

        assert outcome.status is RemovalStatus.REMOVED
        assert outcome.branch_name == "feature/merged"
        assert outcome.branch_cleanup is None
        assert not os.path.exists(repo_with_worktrees.merged)
        # Branch is kept unless asked for
        assert branch_exists(repo_with_worktrees.repo, "feature/merged")

    def test_second_removal_reports_not_found(self, service, repo_with_worktrees):
        service.remove_worktree(repo_with_worktrees.merged, RemoveOptions())

        with pytest.raises(WorktreeNotFoundError) as exc_info:
            service.remove_worktree(repo_with_worktrees.merged, RemoveOptions())
        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert "does not exist" in str(exc_info.value)

    def test_unregistered_directory(self, service, temp_dir):
        plain = temp_dir / "plain"
        plain.mkdir()
        with pytest.raises(WorktreeNotFoundError, match="Not a registered worktree"):
            service.remove_worktree(str(plain), RemoveOptions())
        assert plain.exists()

    def test_relative_path(self, service, repo_with_worktrees, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        outcome = service.remove_worktree("wt-merged", RemoveOptions())
        assert outcome.path == repo_with_worktrees.merged
        assert not os.path.exists(repo_with_worktrees.merged)

    def test_dirty_worktree_refused(self, service, repo_with_worktrees):
        with pytest.raises(UnsafeRemovalError) as exc_info:
            service.remove_worktree(repo_with_worktrees.dirty, RemoveOptions())

        error = exc_info.value
        assert error.kind is ErrorKind.SAFETY
        assert WARNING_UNCOMMITTED in error.warnings
        assert "Use --force to override safety checks" in str(error)
        assert os.path.exists(repo_with_worktrees.dirty)

    def test_current_worktree_refused(self, repo_with_worktrees, config):
        service = RemoveService.create(
            repo_with_worktrees.main, config, cwd=repo_with_worktrees.unmerged
        )
        with pytest.raises(UnsafeRemovalError, match="currently active"):
            service.remove_worktree(repo_with_worktrees.unmerged, RemoveOptions())
        assert os.path.exists(repo_with_worktrees.unmerged)

    def test_force_removes_dirty_worktree(self, service, repo_with_worktrees):
        outcome = service.remove_worktree(repo_with_worktrees.dirty, RemoveOptions(force=True))
        assert outcome.status is RemovalStatus.REMOVED
        assert not os.path.exists(repo_with_worktrees.dirty)

    def test_force_removes_locked_worktree(self, service, repo_with_worktrees):
        repo_with_worktrees.repo.git.worktree("lock", repo_with_worktrees.merged)
        service.remove_worktree(repo_with_worktrees.merged, RemoveOptions(force=True))
        assert not os.path.exists(repo_with_worktrees.merged)

    def test_orphaned_worktree_is_pruned(self, service, repo_with_worktrees):
        shutil.rmtree(repo_with_worktrees.merged)

        outcome = service.remove_worktree(repo_with_worktrees.merged, RemoveOptions())

        assert outcome.status is RemovalStatus.REMOVED
        service.worktree_service.clear_cache()
        assert service.worktree_service.find_worktree(repo_with_worktrees.merged) is None

    @pytest.mark.parametrize("path", ["", "../elsewhere", "bad\x00path"])
    def test_invalid_path(self, service, path):
        with pytest.raises(ValidationError):
            service.remove_worktree(path, RemoveOptions())

    def test_invalid_options(self, service, repo_with_worktrees):
        with pytest.raises(ValidationError):
            service.remove_worktree(
                repo_with_worktrees.merged, RemoveOptions(force=True, dry_run=True)
            )
        assert os.path.exists(repo_with_worktrees.merged)

    def test_git_failure_propagates(self, mocked_service):
        mocked_service.worktree_service.remove_worktree.side_effect = GitOperationError(
            "worktree remove", message="fatal: busy"
        )
        with pytest.raises(GitOperationError):
            mocked_service.remove_worktree(mocked_service.test_path, RemoveOptions())
        mocked_service.branch_manager.delete_branch_safely.assert_not_called()


class TestDryRun:
    """Test that dry runs never change repository state."""

    def test_dry_run_changes_nothing(self, service, repo_with_worktrees):
        outcome = service.remove_worktree(
            repo_with_worktrees.merged, RemoveOptions(dry_run=True, delete_branch=True)
        )

        assert outcome.status is RemovalStatus.DRY_RUN
        assert outcome.dry_run.worktree_path == repo_with_worktrees.merged
        assert outcome.dry_run.branch_name == "feature/merged"
        assert outcome.dry_run.would_delete_branch is True
        assert outcome.dry_run.branch_deletion_reason == REASON_MERGED
        assert os.path.exists(repo_with_worktrees.merged)
        assert branch_exists(repo_with_worktrees.repo, "feature/merged")

    def test_dry_run_reports_branch_that_would_be_kept(self, service, repo_with_worktrees):
        outcome = service.remove_worktree(
            repo_with_worktrees.unmerged, RemoveOptions(dry_run=True, delete_branch=True)
        )
        assert outcome.dry_run.would_delete_branch is False

    def test_dry_run_still_validates(self, service, repo_with_worktrees):
        with pytest.raises(UnsafeRemovalError):
            service.remove_worktree(repo_with_worktrees.dirty, RemoveOptions(dry_run=True))

    def test_dry_run_does_not_call_mutators(self, mocked_service):
        mocked_service.remove_worktree(mocked_service.test_path, RemoveOptions(dry_run=True))
        mocked_service.worktree_service.remove_worktree.assert_not_called()
        mocked_service.worktree_service.prune_worktrees.assert_not_called()
        mocked_service.branch_manager.delete_branch_safely.assert_not_called()


class TestBranchCascade:
    """Test branch deletion after worktree removal."""

    def test_merged_branch_deleted(self, service, repo_with_worktrees):
        outcome = service.remove_worktree(
            repo_with_worktrees.merged, RemoveOptions(delete_branch=True)
        )

        assert outcome.status is RemovalStatus.REMOVED
        assert outcome.branch_cleanup.deleted
        assert outcome.branch_cleanup.reason == REASON_MERGED
        assert not branch_exists(repo_with_worktrees.repo, "feature/merged")

    def test_unmerged_branch_gives_partial_success(self, service, repo_with_worktrees):
        outcome = service.remove_worktree(
            repo_with_worktrees.unmerged, RemoveOptions(delete_branch=True)
        )

        assert outcome.status is RemovalStatus.PARTIAL_SUCCESS
        assert not os.path.exists(repo_with_worktrees.unmerged)
        assert branch_exists(repo_with_worktrees.repo, "feature/unmerged")
        assert "feature/unmerged" in outcome.warning

    def test_remote_branch_deleted_only_when_merged(self, mocked_service):
        manager = mocked_service.branch_manager
        manager.delete_branch_safely.return_value = REASON_MERGED
        manager.delete_remote_branch.return_value = True

        outcome = mocked_service.remove_worktree(
            mocked_service.test_path, RemoveOptions(delete_branch=True, delete_remote=True)
        )

        assert outcome.branch_cleanup.remote_deleted
        manager.delete_remote_branch.assert_called_once_with("feature")

    def test_pushed_branch_keeps_remote_copy(self, mocked_service):
        manager = mocked_service.branch_manager
        manager.delete_branch_safely.return_value = REASON_PUSHED

        outcome = mocked_service.remove_worktree(
            mocked_service.test_path, RemoveOptions(delete_branch=True, delete_remote=True)
        )

        assert outcome.status is RemovalStatus.REMOVED
        assert not outcome.branch_cleanup.remote_deleted
        manager.delete_remote_branch.assert_not_called()

    def test_remote_failure_gives_partial_success(self, mocked_service):
        manager = mocked_service.branch_manager
        manager.delete_branch_safely.return_value = REASON_MERGED
        manager.delete_remote_branch.side_effect = GitOperationError("push", message="denied")

        outcome = mocked_service.remove_worktree(
            mocked_service.test_path, RemoveOptions(delete_branch=True, delete_remote=True)
        )

        assert outcome.status is RemovalStatus.PARTIAL_SUCCESS
        assert outcome.branch_cleanup.deleted
        assert "remote branch deletion failed" in outcome.branch_cleanup.error

    def test_missing_branch_is_not_a_failure(self, mocked_service):
        mocked_service.branch_manager.delete_branch_safely.return_value = None
        outcome = mocked_service.remove_worktree(
            mocked_service.test_path, RemoveOptions(delete_branch=True)
        )
        assert outcome.status is RemovalStatus.REMOVED
        assert not outcome.branch_cleanup.deleted

    def test_detached_worktree_skips_cascade(self, mocked_service):
        mocked_service.worktree_service.find_worktree.return_value = WorktreeInfo(
            path=mocked_service.test_path, branch=""
        )
        outcome = mocked_service.remove_worktree(
            mocked_service.test_path, RemoveOptions(delete_branch=True)
        )
        assert outcome.branch_cleanup is None
        mocked_service.branch_manager.delete_branch_safely.assert_not_called()


def test_listing_failure_still_allows_removal(mocked_service):
    mocked_service.worktree_service.find_worktree.side_effect = GitOperationError("worktree list")

    outcome = mocked_service.remove_worktree(mocked_service.test_path, RemoveOptions())

    assert outcome.status is RemovalStatus.REMOVED
    assert outcome.branch_name == ""
    mocked_service.worktree_service.remove_worktree.assert_called_once_with(
        os.path.abspath(mocked_service.test_path), force=False, locked=False
    )


def test_listing_failure_with_missing_path(mocked_service):
    mocked_service.worktree_service.find_worktree.side_effect = GitOperationError("worktree list")
    missing = str(Path(mocked_service.test_path).parent / "missing")
    with pytest.raises(WorktreeNotFoundError):
        mocked_service.remove_worktree(missing, RemoveOptions())
