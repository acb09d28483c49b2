"""Removal result formatting utilities."""

from typing import Iterable, Optional

from grove.models.removal import BranchCleanup, DryRunResult, RemoveSummary
from grove.models.worktree import WorktreeInfo


def format_success_rate(summary: RemoveSummary) -> str:
    return f"{summary.success_rate():.1f}%"


def format_branch_cleanup(cleanup: Optional[BranchCleanup]) -> str:
    """
    Describe what happened to a removed worktree's branch.

    Args:
        cleanup: Branch cleanup result, None when no cleanup was requested

    Returns:
        One line of text, "" when there is nothing to report
    """
    if cleanup is None:
        return ""
    if cleanup.deleted:
        text = f"Deleted branch '{cleanup.branch_name}' ({cleanup.reason})"
        if cleanup.remote_deleted:
            text += " and its remote branch"
        if cleanup.error:
            text += f"; {cleanup.error}"
        return text
    if cleanup.error:
        return f"Kept branch '{cleanup.branch_name}': {cleanup.error}"
    return f"Kept branch '{cleanup.branch_name}': {cleanup.reason}"


def format_dry_run_item(preview: DryRunResult, delete_branch: bool = False) -> str:
    """
    Format one dry-run entry.

    Example:
        "  • /src/app-feature (branch: feature, would delete: merged into default branch)"
    """
    branch = preview.branch_name or "detached"
    text = f"  • {preview.worktree_path} (branch: {branch}"
    if delete_branch and preview.branch_name:
        verdict = "would delete" if preview.would_delete_branch else "would keep"
        text += f", {verdict}: {preview.branch_deletion_reason}"
    return text + ")"


def format_removal_confirmation_items(worktrees: Iterable[WorktreeInfo]) -> str:
    """
    Format worktrees for a removal confirmation message.

    Example:
        "  • /src/app-old (feature/old)\\n  • /src/app-tmp (detached)"
    """
    lines = []
    for wt in worktrees:
        lines.append(f"  • {wt.path} ({wt.branch or 'detached'})")
    return "\n".join(lines)
