"""Removal request and result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from grove.constants import MINIMUM_STALE_DAYS
from grove.exceptions import ValidationError


@dataclass
class RemoveOptions:
    """Options for single and bulk removal."""

    force: bool = False  # Skip safety validation
    dry_run: bool = False  # Preview only
    delete_branch: bool = False  # Cascade to the worktree's branch
    days: int = 0
    delete_remote: bool = False  # Also delete the remote branch of a merged cascade

    def validate(self) -> None:
        """Raise ValidationError for invalid option combinations."""
        if self.days < 0:
            raise ValidationError(f"days must be non-negative, got {self.days}")
        if self.force and self.dry_run:
            raise ValidationError("--force and --dry-run are mutually exclusive")


@dataclass
class BulkCriteria:
    """Selection rule for bulk removal. Exactly one criterion must be set."""

    merged: bool = False
    stale: bool = False
    all: bool = False
    days_old: int = 0

    def validate(self) -> None:
        """Raise ValidationError unless exactly one criterion is selected."""
        selected = sum((self.merged, self.stale, self.all))
        if selected == 0:
            raise ValidationError(
                "must specify at least one bulk criteria: --merged, --stale, or --all"
            )
        if selected > 1:
            raise ValidationError("only one bulk criteria can be specified at a time")

        if self.stale and self.days_old < MINIMUM_STALE_DAYS:
            raise ValidationError(
                f"days must be at least {MINIMUM_STALE_DAYS} for stale operations, "
                f"got {self.days_old}"
            )

    def is_empty(self) -> bool:
        return not (self.merged or self.stale or self.all)

    def describe(self) -> str:
        if self.merged:
            return "merged"
        if self.stale:
            return f"stale ({self.days_old}+ days)"
        if self.all:
            return "all"
        return "none"


@dataclass
class BranchSafetyStatus:
    """Whether a worktree's branch can be deleted along with it."""

    branch_name: str = ""
    is_merged: bool = False
    is_pushed_to_remote: bool = False
    can_delete_auto: bool = False
    requires_confirm: bool = False
    reason: str = ""

    def is_empty(self) -> bool:
        return self.branch_name == ""


@dataclass
class SafetyReport:
    """Validation results for one worktree path.

    ``can_remove_safely`` starts out True and is only ever lowered: any unsafe
    finding, or any check that could not be completed, downgrades it.
    """

    path: str
    has_uncommitted: bool = False
    is_current: bool = False
    branch_status: BranchSafetyStatus = field(default_factory=BranchSafetyStatus)
    warnings: List[str] = field(default_factory=list)
    can_remove_safely: bool = True

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def mark_unsafe(self, message: str) -> None:
        """Record a warning and downgrade the report."""
        self.add_warning(message)
        self.can_remove_safely = False

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def warnings_text(self) -> str:
        return "\n".join(self.warnings)


@dataclass
class DryRunResult:
    """Preview of a removal. Producing one never changes repository state."""

    worktree_path: str
    branch_name: str = ""
    would_delete_branch: bool = False
    branch_deletion_reason: str = ""


@dataclass
class RemoveSkip:
    """A worktree left in place during bulk removal."""

    path: str
    reason: str
    branch_name: str = ""


@dataclass
class RemoveFailure:
    """A worktree whose removal failed."""

    path: str
    error: str
    branch_name: str = ""
    partial_success: bool = False


@dataclass
class RemoveSummary:
    """Aggregate counts for a bulk run."""

    total: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0
    branches_deleted: int = 0
    duration: float = 0.0  # seconds

    def success_rate(self) -> float:
        """Percentage of removed worktrees; 0 when nothing was considered."""
        if self.total == 0:
            return 0.0
        return self.removed / self.total * 100


@dataclass
class RemoveResults:
    """Results of a bulk removal."""

    removed: List[str] = field(default_factory=list)
    skipped: List[RemoveSkip] = field(default_factory=list)
    failed: List[RemoveFailure] = field(default_factory=list)
    summary: RemoveSummary = field(default_factory=RemoveSummary)
    dry_run: List[DryRunResult] = field(default_factory=list)

    def has_results(self) -> bool:
        return bool(self.removed or self.skipped or self.failed)

    def total_processed(self) -> int:
        return len(self.removed) + len(self.skipped) + len(self.failed)


class RemovalStatus(Enum):
    """How a single removal ended."""

    REMOVED = "removed"
    PARTIAL_SUCCESS = "partial-success"  # Worktree gone, branch cleanup failed
    DRY_RUN = "dry-run"


@dataclass
class BranchCleanup:
    """What happened to the branch after its worktree was removed."""

    branch_name: str
    deleted: bool = False
    reason: str = ""
    error: Optional[str] = None
    remote_deleted: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RemovalOutcome:
    """Result of removing one worktree."""

    path: str
    status: RemovalStatus
    branch_name: str = ""
    branch_cleanup: Optional[BranchCleanup] = None
    dry_run: Optional[DryRunResult] = None

    @property
    def is_partial_success(self) -> bool:
        return self.status is RemovalStatus.PARTIAL_SUCCESS

    @property
    def warning(self) -> Optional[str]:
        """Human-readable warning for a partial success."""
        if self.is_partial_success and self.branch_cleanup is not None:
            return (
                f"Worktree removed, but deleting branch '{self.branch_cleanup.branch_name}' "
                f"failed: {self.branch_cleanup.error}"
            )
        return None
