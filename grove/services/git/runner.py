"""Git command runner for grove."""

import re
from typing import Optional

import git

from grove.constants import DEFAULT_READ_TIMEOUT, DEFAULT_WRITE_TIMEOUT
from grove.exceptions import CommandTimeoutError, ErrorKind, GitOperationError
from grove.logging_config import get_logger

logger = get_logger(__name__)

# GitPython wraps stderr as "\n  stderr: '<text>'"
_STDERR_WRAPPER = re.compile(r"^\s*stderr:\s*'(.*)'\s*$", re.DOTALL)

_NOT_A_WORKTREE_MARKERS = (
    "not a working tree",
    "must be run in a work tree",
    "not a git repository",
)


def clean_stderr(stderr) -> str:
    """Strip GitPython's decoration from a command's stderr."""
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    match = _STDERR_WRAPPER.match(stderr)
    if match:
        stderr = match.group(1)
    return stderr.strip()


def classify_error(stderr: str) -> ErrorKind:
    """Map git's stderr to an ErrorKind. This is the only place git text is inspected."""
    lowered = stderr.lower()
    if lowered.startswith("timeout:"):
        return ErrorKind.TIMEOUT
    if any(marker in lowered for marker in _NOT_A_WORKTREE_MARKERS):
        return ErrorKind.NOT_A_WORKTREE
    return ErrorKind.COMMAND_FAILED


class GitCommandRunner:
    """Runs git subcommands for one repository, one process per call.

    Every call is bounded: queries use ``read_timeout`` and mutating commands
    (``write=True``) use ``write_timeout``. GitPython kills the process when
    the timeout expires.
    """

    def __init__(
        self,
        repo_path: str,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ):
        self.repo_path = repo_path
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

    def _get_git(self) -> git.Git:
        """Get a fresh git.Git command wrapper (cheap, and safe across threads)."""
        return git.Git(self.repo_path)

    def execute(self, *args: str, write: bool = False, timeout: Optional[float] = None) -> str:
        """Run ``git <args>`` and return stdout.

        Raises:
            GitOperationError: the command failed; ``kind`` tells why.
            CommandTimeoutError: the command was killed after its timeout.
        """
        return self._run(args, write, timeout, quiet=False)

    def execute_quiet(
        self, *args: str, write: bool = False, timeout: Optional[float] = None
    ) -> str:
        """Like execute(), but expected failures are only logged at debug level."""
        return self._run(args, write, timeout, quiet=True)

    def _run(self, args, write: bool, timeout: Optional[float], quiet: bool) -> str:
        if timeout is None:
            timeout = self.write_timeout if write else self.read_timeout
        command = ["git", *args]
        operation = " ".join(args[:3]) if args else "git"

        # Mutating commands get their own session: a terminal Ctrl-C must not reach them
        popen_kwargs = {"start_new_session": True} if write else {}

        try:
            output = self._get_git().execute(
                command, kill_after_timeout=timeout, **popen_kwargs
            )
        except git.exc.GitCommandError as e:
            stderr = clean_stderr(getattr(e, "stderr", None)) or str(e)
            status = e.status if isinstance(e.status, int) else None
            kind = classify_error(stderr)

            if kind is ErrorKind.TIMEOUT:
                logger.warning(f"git {operation} timed out after {timeout:g}s")
                raise CommandTimeoutError(operation, timeout, stderr) from e

            log = logger.debug if quiet else logger.warning
            log(f"git {operation} failed (exit {status}): {stderr}")
            raise GitOperationError(operation, message=stderr, kind=kind, status=status) from e
        except (git.exc.GitCommandNotFound, OSError) as e:
            # git executable missing or not runnable
            raise GitOperationError(operation, message=str(e)) from e

        logger.debug(f"git {' '.join(args)} -> {len(output)} bytes")
        return output
