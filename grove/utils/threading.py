"""Worker pool sizing for bulk operations."""

import os
import sys
from typing import Optional


def is_free_threading_enabled() -> bool:
    """True when running on a free-threaded (no-GIL) Python 3.13+ build."""
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    return is_gil_enabled is not None and not is_gil_enabled()


def get_optimal_worker_count(
    user_specified: Optional[int] = None, cap: Optional[int] = None, jobs: Optional[int] = None
) -> int:
    """Calculate how many workers to start.

    Args:
        user_specified: Explicit worker count from configuration
        cap: Hard upper bound regardless of CPU count
        jobs: Number of work items; no point starting more workers than this

    Returns:
        Worker count, at least 1
    """
    if user_specified is not None and user_specified > 0:
        workers = user_specified
    else:
        cpu_count = os.cpu_count() or 1
        # Work is subprocess-bound; threads mostly wait on git
        workers = cpu_count * 2 if is_free_threading_enabled() else cpu_count + 4

    if cap is not None:
        workers = min(workers, cap)
    if jobs is not None:
        workers = min(workers, jobs)
    return max(1, workers)
