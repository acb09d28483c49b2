"""Input validation for branch names and worktree paths."""

import re

from grove.exceptions import ValidationError

_INVALID_CHARS = re.compile(r"[~^:?*\[\]\\]")
_CONSECUTIVE_DOTS = re.compile(r"\.\.")
_INVALID_START_END = re.compile(r"^[./]|[./]$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def validate_branch_name(name: str) -> None:
    """Raise ValidationError unless ``name`` is a usable git branch name."""
    if not name:
        raise ValidationError("branch name cannot be empty")

    problem = None
    if " " in name:
        problem = "cannot contain spaces"
    elif name.startswith("-"):
        problem = "cannot start with a dash"
    elif _INVALID_CHARS.search(name):
        problem = "contains invalid characters (~^:?*[]\\)"
    elif _CONSECUTIVE_DOTS.search(name):
        problem = "cannot contain consecutive dots (..)"
    elif _INVALID_START_END.search(name):
        problem = "cannot start or end with dots or slashes"
    elif _CONTROL_CHARS.search(name):
        problem = "cannot contain control characters"
    elif name in ("HEAD", "@"):
        problem = "cannot be 'HEAD' or '@'"
    elif name.endswith(".lock"):
        problem = "cannot end with '.lock'"

    if problem:
        raise ValidationError(f"invalid branch name '{name}': {problem}")


def validate_worktree_path(path: str) -> None:
    """Raise ValidationError for empty paths and parent-directory traversal."""
    if not path or not path.strip():
        raise ValidationError("worktree path cannot be empty")
    if "\x00" in path:
        raise ValidationError("worktree path cannot contain NUL bytes")

    parts = path.replace("\\", "/").split("/")
    if ".." in parts:
        raise ValidationError(f"invalid worktree path '{path}': path traversal is not allowed")
