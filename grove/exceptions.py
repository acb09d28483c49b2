"""Custom exceptions for grove"""

from enum import Enum
from typing import Iterable, Optional


class ErrorKind(Enum):
    """Closed set of failure classes, compared by equality."""

    VALIDATION = "validation"
    SAFETY = "safety"
    NOT_FOUND = "not-found"
    NOT_A_WORKTREE = "not-a-worktree"
    UNSAFE_BRANCH = "unsafe-branch"
    CURRENT_BRANCH = "current-branch"
    TIMEOUT = "timeout"
    COMMAND_FAILED = "command-failed"


class GroveError(Exception):
    """Base exception for all grove errors."""

    kind = ErrorKind.COMMAND_FAILED


class ValidationError(GroveError):
    """Raised for malformed input before any side effect happens."""

    kind = ErrorKind.VALIDATION


class WorktreeNotFoundError(GroveError):
    """Raised when a path is neither on disk nor registered as a worktree."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: str, reason: str = "Worktree does not exist"):
        self.path = path
        super().__init__(f"{reason}: {path}")


class UnsafeRemovalError(GroveError):
    """Raised when safety validation refuses a removal."""

    kind = ErrorKind.SAFETY

    def __init__(self, path: str, warnings: Iterable[str]):
        self.path = path
        self.warnings = list(warnings)

        lines = [f"Cannot safely remove worktree at {path}"]
        if self.warnings:
            lines.append("Issues found:")
            lines.extend(f"  - {warning}" for warning in self.warnings)
        lines.append("Use --force to override safety checks")
        super().__init__("\n".join(lines))


class BranchNotDeletableError(GroveError):
    """Raised when a branch cannot be deleted without losing work."""

    kind = ErrorKind.UNSAFE_BRANCH

    def __init__(self, branch: str, reason: str):
        self.branch = branch
        self.reason = reason
        super().__init__(f"Cannot automatically delete branch '{branch}': {reason}")


class GitOperationError(GroveError):
    """Exception raised for errors in Git operations."""

    def __init__(
        self,
        operation: str,
        target: Optional[str] = None,
        message: Optional[str] = None,
        kind: ErrorKind = ErrorKind.COMMAND_FAILED,
        status: Optional[int] = None,
    ):
        self.operation = operation
        self.target = target
        self.message = message
        self.kind = kind
        self.status = status

        error_msg = f"Git operation '{operation}' failed"
        if target:
            error_msg += f" for '{target}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class CommandTimeoutError(GitOperationError):
    """Exception raised when a git command exceeds its timeout."""

    def __init__(self, operation: str, timeout: float, message: Optional[str] = None):
        self.timeout = timeout
        super().__init__(
            operation,
            message=message or f"did not complete in {timeout:g}s",
            kind=ErrorKind.TIMEOUT,
        )


class CurrentBranchError(GitOperationError):
    """Exception raised when attempting to delete the checked-out branch."""

    def __init__(self, branch: str):
        super().__init__(
            "delete_branch", branch, "Branch is currently checked out", ErrorKind.CURRENT_BRANCH
        )


class DefaultBranchNotFoundError(GitOperationError):
    """Exception raised when no default branch can be resolved."""

    def __init__(self):
        super().__init__("default_branch", message="Could not determine default branch")
