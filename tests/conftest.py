"""Pytest fixtures for grove tests"""
import os
import tempfile
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import git

from grove.config import Config
from grove.models.worktree import RemoteStatus, WorktreeInfo
from grove.services.git.queries import GitQueries
from grove.services.git.runner import GitCommandRunner


def commit_file(repo_path, name, content, message):
    """Write a file in a work tree and commit it there."""
    work_repo = git.Repo(repo_path)
    (Path(repo_path) / name).write_text(content)
    work_repo.index.add([name])
    work_repo.index.commit(message)
    work_repo.close()


def add_worktree(repo, path, branch):
    """Create a worktree at ``path`` on a new branch forked from main."""
    repo.git.worktree("add", "-b", branch, str(path), "main")
    return os.path.realpath(str(path))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main and no remote."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_remote(git_repo, temp_dir):
    """Repository whose ``origin`` is a local bare repository with main pushed."""
    remote_path = temp_dir / "remote.git"
    git.Repo.init(remote_path, bare=True).close()

    git_repo.create_remote("origin", str(remote_path))
    git_repo.git.push("origin", "main")
    git_repo.git.remote("set-head", "origin", "main")

    yield git_repo


@pytest.fixture
def repo_with_worktrees(git_repo, temp_dir):
    """Main repository plus three worktrees.

    - merged: branch feature/merged, one commit merged back into main
    - unmerged: branch feature/unmerged, one commit not in main
    - dirty: branch feature/dirty, merged but with an untracked file
    """
    main_path = git_repo.working_dir

    merged = add_worktree(git_repo, temp_dir / "wt-merged", "feature/merged")
    commit_file(merged, "merged.txt", "merged\n", "Merged work")
    git_repo.git.merge("feature/merged", "--no-ff", "-m", "Merge feature/merged")

    unmerged = add_worktree(git_repo, temp_dir / "wt-unmerged", "feature/unmerged")
    commit_file(unmerged, "unmerged.txt", "unmerged\n", "Unmerged work")

    dirty = add_worktree(git_repo, temp_dir / "wt-dirty", "feature/dirty")
    (Path(dirty) / "notes.txt").write_text("not committed\n")

    yield SimpleNamespace(
        repo=git_repo,
        main=os.path.realpath(main_path),
        merged=merged,
        unmerged=unmerged,
        dirty=dirty,
    )


@pytest.fixture
def runner(git_repo):
    """Command runner bound to the test repository."""
    return GitCommandRunner(git_repo.working_dir)


@pytest.fixture
def queries(runner):
    return GitQueries(runner)


@pytest.fixture
def config():
    """Configuration with sequential processing for deterministic tests."""
    return Config(sequential=True)


@pytest.fixture
def mock_runner():
    """Create a mock GitCommandRunner."""
    runner = Mock(spec=GitCommandRunner)
    runner.repo_path = "/fake/repo/path"
    runner.execute = Mock(return_value="")
    runner.execute_quiet = Mock(return_value="")
    return runner


@pytest.fixture
def mock_queries(mock_runner):
    """Create a mock GitQueries with a clean, unmerged, local-only default."""
    queries = Mock(spec=GitQueries)
    queries.runner = mock_runner
    queries.remote_name = "origin"
    queries.get_default_branch = Mock(return_value="main")
    queries.is_branch_merged = Mock(return_value=False)
    queries.has_remote_branch = Mock(return_value=False)
    queries.is_upstream_merged = Mock(return_value=False)
    queries.branch_exists = Mock(return_value=True)
    queries.current_branch = Mock(return_value="main")
    return queries


@pytest.fixture
def sample_worktrees():
    """Worktree listing covering main, current, merged and unmerged entries."""
    return [
        WorktreeInfo(path="/src/app", branch="main", is_main=True),
        WorktreeInfo(path="/src/app-current", branch="feature/current", is_current=True),
        WorktreeInfo(
            path="/src/app-merged",
            branch="feature/merged",
            remote=RemoteStatus(has_remote=True, is_merged=True),
        ),
        WorktreeInfo(path="/src/app-wip", branch="feature/wip"),
        WorktreeInfo(path="/src/app-detached", branch="", commit_sha="0123456789abcdef"),
    ]
