"""Command-line entry point for grove"""

import os
import signal
import sys
import threading
from contextlib import contextmanager

from rich.console import Console

from grove.cli.args import parse_args
from grove.config import Config
from grove.exceptions import GroveError, ValidationError
from grove.formatters import format_removal_confirmation_items
from grove.logging_config import LOG_FILE, get_logger, setup_logging
from grove.models.removal import BulkCriteria, RemoveOptions
from grove.services.display_service import DisplayService
from grove.services.removal_service import RemoveService
from grove.utils.threading import get_optimal_worker_count, is_free_threading_enabled

console = Console()
logger = get_logger(__name__)


@contextmanager
def _cancel_on_interrupt(cancel_event: threading.Event):
    """Turn the first Ctrl-C into a cancellation request; a second one aborts."""

    def _signal_handler(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        print()  # New line after ^C
        console.print(
            "[yellow]Interrupted! Finishing removals in progress, skipping the rest...[/yellow]"
        )
        cancel_event.set()

    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGINT, _signal_handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _confirm(prompt: str, assume_yes: bool) -> bool:
    """Ask a yes/no question on a terminal. Non-interactive runs count as yes."""
    if assume_yes or not sys.stdin.isatty():
        return True
    response = console.input(f"{prompt} [y/N] ")
    return response.strip().lower() in ("y", "yes")


def _build_config(args) -> Config:
    return Config(
        remote_name=args.remote,
        workers=getattr(args, "workers", None),
        sequential=getattr(args, "sequential", False),
        verbose=args.verbose,
        debug=args.debug,
    )


def _print_debug_info(config: Config) -> None:
    console.print("[yellow]Debug mode enabled[/yellow]")
    console.print("[yellow]Threading Information:[/yellow]")
    console.print(f"  CPU count: {os.cpu_count()}")
    console.print(f"  Free-threading enabled: {is_free_threading_enabled()}")
    console.print(f"  Optimal workers: {get_optimal_worker_count(config.workers)}")
    console.print("[yellow]Configuration:[/yellow]")
    for key, value in config.to_dict().items():
        console.print(f"  {key}: {value}")
    console.print(f"  log file: {LOG_FILE}")
    console.print("[dim]Note: Debug mode forces sequential processing for readable logs[/dim]")


def run_list(args, service: RemoveService, display: DisplayService) -> int:
    worktrees = service.worktree_service.list_worktrees()
    if not worktrees:
        console.print("No worktrees found.")
        return 0
    display.display_worktree_table(worktrees, show_legend=args.legend)
    return 0


def run_remove(args, service: RemoveService, display: DisplayService, config: Config) -> int:
    """Dispatch ``grove remove`` to single, bulk or interactive mode."""
    bulk = args.merged or args.stale or args.all

    if args.path and (bulk or args.interactive):
        raise ValidationError(
            "a worktree path cannot be combined with --merged, --stale, --all or --interactive"
        )
    if not args.path and not bulk and not args.interactive:
        raise ValidationError(
            "specify a worktree path, or one of --merged, --stale, --all, --interactive"
        )
    if args.delete_remote and not args.delete_branch:
        raise ValidationError("--delete-remote requires --delete-branch")

    days = args.days if args.days is not None else config.stale_days
    options = RemoveOptions(
        force=args.force,
        dry_run=args.dry_run,
        delete_branch=args.delete_branch,
        days=days,
        delete_remote=args.delete_remote,
    )
    options.validate()

    if args.interactive:
        from grove.tui import WorktreeRemovalApp

        WorktreeRemovalApp(service, options).run()
        return 0

    if bulk:
        criteria = BulkCriteria(
            merged=args.merged, stale=args.stale, all=args.all, days_old=days
        )
        return _remove_bulk(args, service, display, criteria, options)

    return _remove_single(args, service, display, options)


def _remove_single(args, service: RemoveService, display: DisplayService, options) -> int:
    if options.force and not _confirm(
        f"Force remove {args.path}? Uncommitted changes will be lost.", args.yes
    ):
        console.print("[yellow]Cancelled[/yellow]")
        return 1

    outcome = service.remove_worktree(args.path, options)
    display.display_removal_outcome(outcome)
    return 0


def _remove_bulk(args, service: RemoveService, display: DisplayService, criteria, options) -> int:
    criteria.validate()
    cancel_event = threading.Event()

    if options.force and not options.dry_run and not args.yes and sys.stdin.isatty():
        worktrees = service.worktree_service.list_worktrees()
        candidates = service.filter_candidates(worktrees, criteria)
        if not candidates:
            console.print(f"No {criteria.describe()} worktrees found.")
            return 0

        console.print(f"\nWorktrees to force-remove ({len(candidates)}):")
        console.print(format_removal_confirmation_items(candidates))
        if not _confirm("\nUncommitted changes will be lost. Proceed?", False):
            console.print("[yellow]Cancelled[/yellow]")
            return 1

        with _cancel_on_interrupt(cancel_event):
            results = service.remove_candidates(candidates, options, cancel_event)
    else:
        with _cancel_on_interrupt(cancel_event):
            results = service.remove_bulk(criteria, options, cancel_event)

    display.display_bulk_results(results, delete_branch=options.delete_branch)
    if cancel_event.is_set():
        console.print("[yellow]Operation cancelled by user[/yellow]")
    return 1 if results.failed else 0


def main(argv=None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    tui_mode = getattr(parsed_args, "interactive", False)

    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug, tui_mode=tui_mode)

    display = DisplayService(console, verbose=parsed_args.verbose)
    try:
        config = _build_config(parsed_args)
        if parsed_args.debug and not tui_mode:
            _print_debug_info(config)

        service = RemoveService.create(os.getcwd(), config)

        if parsed_args.command == "list":
            return run_list(parsed_args, service, display)
        return run_remove(parsed_args, service, display, config)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except (GroveError, ValueError) as e:
        display.display_error(str(e))
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
