"""Display service for worktree listings and removal results"""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from grove.constants import COLUMNS, LEGEND_TEXT
from grove.formatters import (
    format_age,
    format_branch,
    format_branch_cleanup,
    format_dry_run_item,
    format_duration,
    format_flag,
    format_path,
    format_success_rate,
    format_worktree_state,
    is_protected,
)
from grove.logging_config import get_logger
from grove.models.removal import RemovalOutcome, RemovalStatus, RemoveResults
from grove.models.worktree import WorktreeInfo

logger = get_logger(__name__)


class DisplayService:
    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def display_worktree_table(
        self, worktrees: List[WorktreeInfo], base_path: Optional[str] = None, show_legend: bool = False
    ) -> None:
        """Display a table of worktrees."""
        table = Table()
        for col in COLUMNS:
            table.add_column(col.label)

        for wt in worktrees:
            style = "cyan" if is_protected(wt) else ("yellow" if wt.remote.is_merged else None)
            table.add_row(
                escape(format_path(wt.path, base_path)),
                format_branch(wt),
                format_age(wt.last_activity),
                format_flag(wt.remote.is_merged),
                format_flag(wt.remote.has_remote),
                format_worktree_state(wt),
                style=style,
            )

        self.console.print(table)
        if show_legend:
            self.console.print(LEGEND_TEXT)

    def display_removal_outcome(self, outcome: RemovalOutcome) -> None:
        """Display the result of removing one worktree."""
        if outcome.status is RemovalStatus.DRY_RUN:
            self.console.print("[bold]Dry run[/bold], nothing was changed. Would remove:")
            if outcome.dry_run is not None:
                delete_branch = outcome.dry_run.branch_deletion_reason != ""
                self.console.print(escape(format_dry_run_item(outcome.dry_run, delete_branch)))
            return

        self.console.print(f"[green]✓[/green] Removed worktree {escape(outcome.path)}")

        cleanup_text = format_branch_cleanup(outcome.branch_cleanup)
        if outcome.is_partial_success:
            self.console.print(f"[yellow]Warning:[/yellow] {escape(outcome.warning)}")
        elif cleanup_text:
            self.console.print(f"  {escape(cleanup_text)}")

    def display_bulk_results(self, results: RemoveResults, delete_branch: bool = False) -> None:
        """Display the results of a bulk removal, dry run included."""
        summary = results.summary

        if results.dry_run:
            self.console.print(
                f"[bold]Dry run[/bold], nothing was changed. "
                f"Would remove {len(results.dry_run)} worktree(s):"
            )
            for preview in results.dry_run:
                self.console.print(escape(format_dry_run_item(preview, delete_branch)))
            return

        if not results.has_results():
            self.console.print(
                f"No worktrees matched ({summary.total} worktree(s) checked)."
            )
            return

        table = Table(title="Removal summary", show_header=False)
        table.add_column("Item")
        table.add_column("Count", justify="right")
        table.add_row("Candidates", str(summary.total))
        table.add_row("[green]Removed[/green]", str(summary.removed))
        table.add_row("[yellow]Skipped[/yellow]", str(summary.skipped))
        table.add_row("[red]Failed[/red]", str(summary.failed))
        if delete_branch:
            table.add_row("Branches deleted", str(summary.branches_deleted))
        table.add_row("Success rate", format_success_rate(summary))
        table.add_row("Duration", format_duration(summary.duration))
        self.console.print(table)

        if self.verbose and results.removed:
            self.console.print("\nRemoved:")
            for path in results.removed:
                self.console.print(f"  [green]✓[/green] {escape(path)}")

        if results.skipped:
            self.console.print("\nSkipped:")
            for skip in results.skipped:
                self.console.print(f"  [yellow]•[/yellow] {escape(skip.path)}: {escape(skip.reason)}")

        if results.failed:
            self.console.print("\nFailed:")
            for failure in results.failed:
                self.console.print(f"  [red]✗[/red] {escape(failure.path)}: {escape(failure.error)}")

    def display_error(self, message: str) -> None:
        self.console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
