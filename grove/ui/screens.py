"""Modal screens for the grove TUI."""

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from grove.formatters import format_age, format_branch, format_date, format_worktree_state
from grove.models.removal import SafetyReport
from grove.models.worktree import WorktreeInfo

DIALOG_CSS = """
.dialog {
    width: 80%;
    height: auto;
    max-height: 85%;
    border: thick $background 80%;
    background: $surface;
    padding: 1 2;
}

.dialog.danger {
    border: thick $error;
}

.dialog-title {
    width: 100%;
    text-style: bold;
    content-align: center middle;
}

.dialog-body {
    width: 100%;
    height: auto;
    padding: 1 0;
}

.dialog-buttons {
    width: 100%;
    height: auto;
    align: center middle;
}

.dialog-buttons Button {
    margin: 0 1;
}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Yes/No dialog; dismisses with True only on an explicit yes."""

    DEFAULT_CSS = "ConfirmScreen { align: center middle; }" + DIALOG_CSS

    BINDINGS = [
        Binding("y", "answer(True)", "Yes", show=False),
        Binding("n", "answer(False)", "No", show=False),
        Binding("escape", "answer(False)", "No", show=False),
    ]

    def __init__(self, message: str, title: str = "Confirm", danger: bool = False):
        super().__init__()
        self.message = message
        self.title_text = title
        self.danger = danger

    def compose(self) -> ComposeResult:
        classes = "dialog danger" if self.danger else "dialog"
        with Vertical(classes=classes):
            yield Label(self.title_text, classes="dialog-title")
            with ScrollableContainer(classes="dialog-body"):
                yield Static(self.message, markup=False)
            with Horizontal(classes="dialog-buttons"):
                yield Button("Yes (y)", variant="error", id="yes")
                yield Button("No (n)", variant="primary", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)


class InfoScreen(ModalScreen):
    """Read-only dialog for results, errors, safety reports and the legend."""

    DEFAULT_CSS = "InfoScreen { align: center middle; }" + DIALOG_CSS

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("enter", "close", "Close", show=False),
    ]

    def __init__(self, info: str, title: str = "Info", markup: bool = False):
        """
        Args:
            info: Text to show
            title: Dialog heading
            markup: Render ``info`` as rich markup; callers escape user text
        """
        super().__init__()
        self.info = info
        self.title_text = title
        self.use_markup = markup

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(self.title_text, classes="dialog-title")
            with ScrollableContainer(classes="dialog-body"):
                yield Static(self.info, markup=self.use_markup)
            with Horizontal(classes="dialog-buttons"):
                yield Button("Close", variant="primary", id="close")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss()

    def action_close(self) -> None:
        self.dismiss()


def format_worktree_details(wt: WorktreeInfo, report: SafetyReport) -> str:
    """Build the text of the safety report dialog (rich markup)."""
    if report.can_remove_safely:
        verdict = "[green]Safe to remove[/green]"
    else:
        verdict = "[red]Not safe to remove without --force[/red]"

    branch_status = report.branch_status
    if branch_status.is_empty():
        branch_text = "n/a (detached HEAD)"
    else:
        branch_text = escape(branch_status.reason)

    lines = [
        f"[bold]Path:[/bold] {escape(wt.path)}",
        f"[bold]Branch:[/bold] {escape(format_branch(wt))}",
        f"[bold]Commit:[/bold] {wt.commit_sha[:12] or '-'}",
        f"[bold]Last Activity:[/bold] {format_date(wt.last_activity)} ({format_age(wt.last_activity)})",
        f"[bold]State:[/bold] {format_worktree_state(wt) or 'normal'}",
        f"[bold]Uncommitted Changes:[/bold] {'Yes' if report.has_uncommitted else 'No'}",
        f"[bold]Branch Deletion:[/bold] {branch_text}",
        f"[bold]Removal:[/bold] {verdict}",
    ]
    if report.warnings:
        lines.append("")
        lines.append("[bold]Issues:[/bold]")
        lines.extend(f"  • {escape(warning)}" for warning in report.warnings)
    return "\n".join(lines)
