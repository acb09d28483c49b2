"""Command-line interface for grove.

This package provides the CLI entry point and argument parsing.
"""

from .args import parse_args
from .main import main

__all__ = ["main", "parse_args"]
