"""Data models for grove."""

from .worktree import RemoteStatus, WorktreeInfo, WorktreeStatus
from .removal import (
    BranchCleanup,
    BranchSafetyStatus,
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

__all__ = [
    "RemoteStatus",
    "WorktreeInfo",
    "WorktreeStatus",
    "BranchCleanup",
    "BranchSafetyStatus",
    "BulkCriteria",
    "DryRunResult",
    "RemovalOutcome",
    "RemovalStatus",
    "RemoveFailure",
    "RemoveOptions",
    "RemoveResults",
    "RemoveSkip",
    "RemoveSummary",
    "SafetyReport",
]
