"""Tests for BranchManager"""
from unittest.mock import call

import pytest

from grove.constants import REASON_MERGED, REASON_PUSHED, REASON_TRACKING_MERGED, REASON_UNMERGED
from grove.exceptions import (
    BranchNotDeletableError,
    CurrentBranchError,
    ErrorKind,
    GitOperationError,
    ValidationError,
)
from grove.services.branch_manager import BranchManager
from grove.services.git.queries import GitQueries
from grove.services.git.runner import GitCommandRunner

from conftest import commit_file


class TestAutomaticDeletionPredicate:
    """Test can_delete_branch_automatically."""

    def test_merged_checked_first(self, mock_queries):
        mock_queries.is_branch_merged.return_value = True
        mock_queries.has_remote_branch.return_value = True

        assert BranchManager(mock_queries).can_delete_branch_automatically("f") == (
            True,
            REASON_MERGED,
        )
        mock_queries.has_remote_branch.assert_not_called()

    def test_pushed(self, mock_queries):
        mock_queries.has_remote_branch.return_value = True
        assert BranchManager(mock_queries).can_delete_branch_automatically("f") == (
            True,
            REASON_PUSHED,
        )

    def test_tracking_merged_upstream(self, mock_queries):
        mock_queries.is_upstream_merged.return_value = True
        assert BranchManager(mock_queries).can_delete_branch_automatically("f") == (
            True,
            REASON_TRACKING_MERGED,
        )

    def test_nothing_applies(self, mock_queries):
        assert BranchManager(mock_queries).can_delete_branch_automatically("f") == (
            False,
            REASON_UNMERGED,
        )

    def test_failed_check_moves_on(self, mock_queries):
        mock_queries.is_branch_merged.side_effect = GitOperationError("merge-base")
        mock_queries.has_remote_branch.return_value = True
        assert BranchManager(mock_queries).can_delete_branch_automatically("f") == (
            True,
            REASON_PUSHED,
        )

    def test_invalid_name(self, mock_queries):
        can_delete, reason = BranchManager(mock_queries).can_delete_branch_automatically("bad name")
        assert can_delete is False
        assert "spaces" in reason
        mock_queries.is_branch_merged.assert_not_called()


class TestDeleteBranchSafely:
    """Test delete_branch_safely with mocked queries."""

    def test_missing_branch_is_a_no_op(self, mock_queries):
        mock_queries.branch_exists.return_value = False
        assert BranchManager(mock_queries).delete_branch_safely("gone") is None
        mock_queries.runner.execute.assert_not_called()

    def test_current_branch_refused(self, mock_queries):
        mock_queries.current_branch.return_value = "feature"
        with pytest.raises(CurrentBranchError) as exc_info:
            BranchManager(mock_queries).delete_branch_safely("feature")
        assert exc_info.value.kind is ErrorKind.CURRENT_BRANCH

    def test_unmerged_refused(self, mock_queries):
        with pytest.raises(BranchNotDeletableError) as exc_info:
            BranchManager(mock_queries).delete_branch_safely("feature")
        assert exc_info.value.reason == REASON_UNMERGED
        mock_queries.runner.execute.assert_not_called()

    def test_merged_deleted(self, mock_queries):
        mock_queries.is_branch_merged.return_value = True
        assert BranchManager(mock_queries).delete_branch_safely("feature") == REASON_MERGED
        mock_queries.runner.execute.assert_called_once_with(
            "branch", "-D", "feature", write=True
        )

    def test_invalid_name(self, mock_queries):
        with pytest.raises(ValidationError):
            BranchManager(mock_queries).delete_branch_safely("a..b")


class TestRealBranches:
    """Test branch deletion against real repositories."""

    def test_delete_merged_branch(self, git_repo, queries):
        git_repo.git.branch("feature/done")
        manager = BranchManager(queries)

        assert manager.delete_branch_safely("feature/done") == REASON_MERGED
        assert queries.branch_exists("feature/done") is False

    def test_unmerged_branch_survives(self, git_repo, queries):
        git_repo.git.checkout("-b", "feature/wip")
        commit_file(git_repo.working_dir, "wip.txt", "wip\n", "WIP")
        git_repo.git.checkout("main")

        with pytest.raises(BranchNotDeletableError):
            BranchManager(queries).delete_branch_safely("feature/wip")
        assert queries.branch_exists("feature/wip") is True

    def test_pushed_unmerged_branch_deleted(self, git_repo_with_remote):
        repo = git_repo_with_remote
        repo.git.checkout("-b", "feature/pushed")
        commit_file(repo.working_dir, "pushed.txt", "pushed\n", "Pushed work")
        repo.git.push("origin", "feature/pushed")
        repo.git.checkout("main")
        queries = GitQueries(GitCommandRunner(repo.working_dir))

        assert BranchManager(queries).delete_branch_safely("feature/pushed") == REASON_PUSHED
        assert queries.branch_exists("feature/pushed") is False
        assert queries.has_remote_branch("feature/pushed") is True

    def test_delete_remote_branch(self, git_repo_with_remote):
        repo = git_repo_with_remote
        repo.git.branch("feature/remote")
        repo.git.push("origin", "feature/remote")
        queries = GitQueries(GitCommandRunner(repo.working_dir))
        manager = BranchManager(queries)

        assert manager.delete_remote_branch("feature/remote") is True
        assert queries.has_remote_branch("feature/remote") is False
        assert manager.delete_remote_branch("feature/remote") is False

    def test_remote_deletion_uses_configured_remote(self, mock_queries):
        mock_queries.remote_name = "upstream"
        mock_queries.has_remote_branch.return_value = True

        BranchManager(mock_queries).delete_remote_branch("feature")

        assert mock_queries.runner.execute.call_args == call(
            "push", "upstream", "--delete", "feature", write=True
        )
