"""Utility functions for grove."""

from .threading import get_optimal_worker_count, is_free_threading_enabled

__all__ = [
    "get_optimal_worker_count",
    "is_free_threading_enabled",
]
