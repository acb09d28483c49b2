"""Services for grove."""

from .branch_manager import BranchManager
from .display_service import DisplayService
from .removal_service import RemoveService
from .safety_checker import SafetyChecker

__all__ = ["BranchManager", "DisplayService", "RemoveService", "SafetyChecker"]
