"""
grove - Safe removal of git worktrees and the branches behind them
"""

from .__version__ import __version__
from .services.removal_service import RemoveService
from .cli.main import main

__all__ = ["RemoveService", "main", "__version__"]
