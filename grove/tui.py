"""Interactive TUI for grove using Textual."""

import asyncio
import threading
from dataclasses import replace
from typing import List, Optional, Set

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.coordinate import Coordinate
from textual.widgets import DataTable, Footer, Header, Static

from .__version__ import __version__
from .constants import COLUMNS, LEGEND_TEXT, SYMBOL_MARKED, SYMBOL_UNMARKED
from .formatters import (
    format_age,
    format_branch,
    format_dry_run_item,
    format_flag,
    format_path,
    format_removal_confirmation_items,
    format_worktree_state,
    is_protected,
)
from .logging_config import LOG_FILE, get_logger
from .models.removal import RemoveOptions, RemoveResults
from .models.worktree import WorktreeInfo
from .services.removal_service import RemoveService
from .ui.screens import ConfirmScreen, InfoScreen, format_worktree_details

logger = get_logger(__name__)


def format_results_report(results: RemoveResults) -> str:
    """Plain-text report of skipped and failed worktrees after a TUI removal."""
    lines = []
    if results.skipped:
        lines.append(f"Skipped {len(results.skipped)}:")
        lines.extend(f"  • {skip.path}: {skip.reason}" for skip in results.skipped)
    if results.failed:
        if lines:
            lines.append("")
        lines.append(f"Failed {len(results.failed)}:")
        lines.extend(f"  • {failure.path}: {failure.error}" for failure in results.failed)
    return "\n".join(lines)


class WorktreeRemovalApp(App):
    """Interactive worktree picker: mark worktrees, confirm, remove."""

    TITLE = "Grove"
    SUB_TITLE = f"v{__version__}"

    CSS = """
    Screen {
        background: $surface;
    }

    DataTable {
        height: 1fr;
    }

    #status-bar {
        dock: bottom;
        height: auto;
        background: $panel;
        padding: 1;
    }

    ToastRack {
        offset: 0 -3;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("enter", "remove_marked", "Remove Marked"),
        Binding("space", "toggle_mark", "Mark/Unmark"),
        Binding("a", "mark_merged", "Mark Merged"),
        Binding("c", "clear_marks", "Clear Marks"),
        Binding("b", "toggle_delete_branch", "Delete Branches"),
        Binding("i", "show_info", "Show Info"),
        Binding("l", "show_legend", "Legend"),
        Binding("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        service: RemoveService,
        options: Optional[RemoveOptions] = None,
        worktrees: Optional[List[WorktreeInfo]] = None,
    ):
        super().__init__()
        self.service = service
        self.options = options or RemoveOptions()
        self.worktrees: List[WorktreeInfo] = worktrees or []
        self.marked_paths: Set[str] = set()
        self.cancel_event = threading.Event()

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header(show_clock=False, icon="")
        yield DataTable(id="worktree-table", cursor_type="row", zebra_stripes=True)
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Set up the table when app starts."""
        table = self.query_one(DataTable)

        table.add_column(Text(SYMBOL_UNMARKED, justify="center"), width=None, key="mark")
        for col in COLUMNS:
            if col.key in ("merged", "remote"):
                table.add_column(Text(col.label, justify="center"), width=None, key=col.key)
            else:
                table.add_column(col.label, width=None, key=col.key)

        if self.worktrees:
            self._populate_table()
            self._update_status()
        else:
            table.loading = True
            self.load_worktrees()

    def _populate_table(self) -> None:
        """Add worktree rows to the table."""
        table = self.query_one(DataTable)
        table.clear()

        base_path = self.service.worktree_service.runner.repo_path
        for wt in self.worktrees:
            if is_protected(wt):
                style = "cyan"
            elif wt.path in self.marked_paths:
                style = "bold red"
            elif wt.remote.is_merged:
                style = "yellow"
            else:
                style = ""

            mark = SYMBOL_MARKED if wt.path in self.marked_paths else SYMBOL_UNMARKED
            table.add_row(
                Text(mark, justify="center"),
                Text(format_path(wt.path, base_path), style=style),
                Text(format_branch(wt), style=style),
                format_age(wt.last_activity),
                Text(format_flag(wt.remote.is_merged), justify="center"),
                Text(format_flag(wt.remote.has_remote), justify="center"),
                format_worktree_state(wt),
                key=wt.path,
            )

    def _update_status(self) -> None:
        """Update status bar with current stats."""
        status = self.query_one("#status-bar", Static)

        removable = sum(1 for wt in self.worktrees if not is_protected(wt))
        merged = sum(1 for wt in self.worktrees if wt.remote.is_merged and not is_protected(wt))
        modes = []
        if self.options.dry_run:
            modes.append("dry run")
        if self.options.force:
            modes.append("force")
        branch_mode = "on" if self.options.delete_branch else "off"

        status.update(
            f"Total: {len(self.worktrees)} | "
            f"Removable: {removable} | "
            f"Merged: {merged} | "
            f"Marked: {len(self.marked_paths)} | "
            f"Delete branches: {branch_mode}"
            + (f" | Mode: {', '.join(modes)}" if modes else "")
        )

    def _selected_worktree(self) -> Optional[WorktreeInfo]:
        table = self.query_one(DataTable)
        if table.cursor_row is None or table.cursor_row >= len(self.worktrees):
            return None
        return self.worktrees[table.cursor_row]

    def _refresh_view(self, saved_row: Optional[int] = None) -> None:
        self._populate_table()
        self._update_status()
        if saved_row is not None and self.worktrees:
            row = min(saved_row, len(self.worktrees) - 1)
            self.query_one(DataTable).cursor_coordinate = Coordinate(row, 0)

    def action_toggle_mark(self) -> None:
        """Toggle mark on current row."""
        wt = self._selected_worktree()
        if wt is None:
            return

        if wt.path in self.marked_paths:
            self.marked_paths.discard(wt.path)
        elif is_protected(wt):
            self.notify(
                f"Cannot mark the {format_worktree_state(wt)} worktree", severity="warning"
            )
            return
        else:
            self.marked_paths.add(wt.path)

        # Move down one row after marking
        self._refresh_view(self.query_one(DataTable).cursor_row + 1)

    def action_mark_merged(self) -> None:
        """Mark every removable worktree whose branch is merged."""
        merged = [wt for wt in self.worktrees if wt.remote.is_merged and not is_protected(wt)]
        self.marked_paths.update(wt.path for wt in merged)
        self._refresh_view(self.query_one(DataTable).cursor_row)
        self.notify(f"Marked {len(merged)} merged worktrees")

    def action_clear_marks(self) -> None:
        """Clear all marks."""
        count = len(self.marked_paths)
        self.marked_paths.clear()
        self._refresh_view(self.query_one(DataTable).cursor_row)
        if count > 0:
            self.notify(f"Cleared {count} marks")

    def action_toggle_delete_branch(self) -> None:
        self.options = replace(self.options, delete_branch=not self.options.delete_branch)
        self._update_status()
        state = "will" if self.options.delete_branch else "will not"
        self.notify(f"Branches of removed worktrees {state} be deleted")

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Handle Enter key press on DataTable - triggers remove action."""
        self.action_remove_marked()

    def action_remove_marked(self) -> None:
        """Ask for confirmation, then remove all marked worktrees."""
        candidates = [wt for wt in self.worktrees if wt.path in self.marked_paths]
        if not candidates:
            self.notify("No worktrees marked for removal", severity="warning")
            return

        verb = "Preview removal of" if self.options.dry_run else "Remove"
        count = len(candidates)
        message = f"{verb} {count} marked worktree{'s' if count > 1 else ''}?\n\n"
        message += format_removal_confirmation_items(candidates)
        if self.options.delete_branch:
            message += "\n\nMerged or pushed branches will be deleted too."
        if self.options.force:
            message += "\n\nForce mode: uncommitted changes will be lost."

        def handle_confirmation(confirmed: Optional[bool]) -> None:
            if not confirmed:
                self.notify("Removal cancelled")
                return
            self.remove_worktrees(candidates)

        self.push_screen(
            ConfirmScreen(message, title="Remove worktrees", danger=self.options.force),
            handle_confirmation,
        )

    @work(exclusive=True, group="remove", thread=False)
    async def remove_worktrees(self, candidates: List[WorktreeInfo]) -> None:
        """Remove confirmed worktrees in the background."""
        table = self.query_one(DataTable)
        table.loading = True

        try:
            results = await asyncio.to_thread(
                self.service.remove_candidates, candidates, self.options, self.cancel_event
            )
        except Exception as e:
            logger.error(f"Error removing worktrees: {e}", exc_info=True)
            self.push_screen(InfoScreen(f"Error removing worktrees:\n\n{e}", title="Error"))
            table.loading = False
            return

        self.marked_paths.clear()

        if results.dry_run:
            table.loading = False
            self._refresh_view(table.cursor_row)
            items = "\n".join(
                format_dry_run_item(preview, self.options.delete_branch)
                for preview in results.dry_run
            )
            self.push_screen(
                InfoScreen(f"Nothing was changed. Would remove:\n\n{items}", title="Dry run")
            )
            return

        summary = results.summary
        if summary.removed:
            message = f"✓ Removed {summary.removed} worktrees"
            if self.options.delete_branch:
                message += f" and deleted {summary.branches_deleted} branches"
            self.notify(message, severity="information")

        report = format_results_report(results)
        if report:
            self.push_screen(InfoScreen(report, title="Removal results"))

        # Listing changed underneath us
        await self._reload(table)

    async def _reload(self, table: DataTable) -> None:
        saved_row = table.cursor_row
        table.loading = True
        try:
            self.service.worktree_service.clear_cache()
            self.worktrees = await asyncio.to_thread(self.service.worktree_service.list_worktrees)
            existing = {wt.path for wt in self.worktrees}
            self.marked_paths &= existing
            self._refresh_view(saved_row)
        finally:
            table.loading = False

    @work(exclusive=True, group="load", thread=False)
    async def load_worktrees(self) -> None:
        """Load worktree data (runs in background)."""
        table = self.query_one(DataTable)
        try:
            await self._reload(table)
            if not self.worktrees:
                self.notify("No worktrees found", severity="warning")
        except Exception as e:
            logger.error(f"Error loading worktrees: {e}", exc_info=True)
            self.push_screen(
                InfoScreen(
                    f"Error loading worktrees:\n\n{e}\n\nSee {LOG_FILE} for details.",
                    title="Error",
                )
            )

    def action_refresh(self) -> None:
        """Trigger refresh of worktree data."""
        self.load_worktrees()

    def action_show_info(self) -> None:
        """Show the safety report for the selected worktree."""
        wt = self._selected_worktree()
        if wt is not None:
            self.show_info(wt)

    @work(exclusive=True, group="info", thread=False)
    async def show_info(self, wt: WorktreeInfo) -> None:
        try:
            report = await asyncio.to_thread(self.service.validate_removal, wt.path, wt)
        except Exception as e:
            logger.error(f"Error checking {wt.path}: {e}", exc_info=True)
            self.push_screen(InfoScreen(f"Error checking {wt.path}:\n\n{e}", title="Error"))
            return

        details = format_worktree_details(wt, report)
        self.push_screen(InfoScreen(details, title="Safety report", markup=True))

    def action_show_legend(self) -> None:
        """Show legend explaining symbols and states."""
        self.push_screen(InfoScreen(LEGEND_TEXT.strip(), title="Legend"))

    async def action_quit(self) -> None:
        """Stop scheduling removals, cancel workers and exit."""
        self.cancel_event.set()
        self.workers.cancel_all()
        self.exit()
