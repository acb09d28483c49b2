"""Command-line argument parsing for grove."""

import argparse

from grove.__version__ import __version__
from grove.constants import DEFAULT_REMOTE, DEFAULT_STALE_DAYS


def _common_parser() -> argparse.ArgumentParser:
    """Options accepted by every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    common.add_argument(
        "--debug",
        action="store_true",
        help="Show debug information for troubleshooting (also logs to ~/.grove/grove.log)",
    )
    common.add_argument(
        "--remote",
        default=DEFAULT_REMOTE,
        metavar="NAME",
        help=f"Remote used for merge and push checks (default: {DEFAULT_REMOTE})",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the grove argument parser."""
    common = _common_parser()

    parser = argparse.ArgumentParser(
        prog="grove",
        description="Safely remove git worktrees and the branches behind them",
    )
    parser.add_argument("--version", action="version", version=f"grove {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    list_parser = subparsers.add_parser(
        "list", parents=[common], help="List worktrees with their merge and activity status"
    )
    list_parser.add_argument(
        "--legend", action="store_true", help="Explain the symbols used in the table"
    )

    remove = subparsers.add_parser(
        "remove",
        parents=[common],
        help="Remove a worktree, or every worktree matching a criterion",
        epilog="Without --force, worktrees that are current, dirty or locked are refused "
        "(single mode) or skipped (bulk mode).",
    )
    remove.add_argument("path", nargs="?", help="Worktree to remove")

    selection = remove.add_mutually_exclusive_group()
    selection.add_argument(
        "--merged", action="store_true", help="Remove worktrees whose branch is merged"
    )
    selection.add_argument(
        "--stale", action="store_true", help="Remove worktrees without recent activity"
    )
    selection.add_argument(
        "--all", action="store_true", help="Remove every worktree except the current and main one"
    )
    selection.add_argument(
        "--interactive", action="store_true", help="Pick worktrees to remove in a TUI"
    )

    remove.add_argument(
        "--days",
        type=int,
        metavar="N",
        help=f"Inactivity threshold for --stale (default: {DEFAULT_STALE_DAYS})",
    )
    remove.add_argument(
        "--force",
        action="store_true",
        help="Skip safety checks; uncommitted changes are lost",
    )
    remove.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview mode - show what would be removed without removing anything",
    )
    remove.add_argument(
        "--delete-branch",
        action="store_true",
        help="Also delete each removed worktree's branch when it is merged or pushed",
    )
    remove.add_argument(
        "--delete-remote",
        action="store_true",
        help="With --delete-branch, also delete the remote branch of merged branches",
    )
    remove.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask for confirmation with --force"
    )
    remove.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of parallel removals in bulk mode (default: auto, at most 4)",
    )
    remove.add_argument(
        "--sequential",
        action="store_true",
        help="Force sequential processing (disable parallelism)",
    )

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
