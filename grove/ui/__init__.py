"""Textual screens for the grove TUI."""

from .screens import ConfirmScreen, InfoScreen, format_worktree_details

__all__ = ["ConfirmScreen", "InfoScreen", "format_worktree_details"]
