"""Configuration handling for grove"""

from dataclasses import dataclass, fields
from typing import Optional

from grove.constants import (
    DEFAULT_READ_TIMEOUT,
    DEFAULT_REMOTE,
    DEFAULT_STALE_DAYS,
    DEFAULT_WRITE_TIMEOUT,
)


@dataclass
class Config:
    """Configuration for grove with validation."""

    remote_name: str = DEFAULT_REMOTE

    # Stale worktree threshold
    stale_days: int = DEFAULT_STALE_DAYS

    # Per-command timeouts (seconds)
    read_timeout: float = DEFAULT_READ_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT

    # Execution modes
    sequential: bool = False  # Force sequential bulk processing
    workers: Optional[int] = None  # None = auto-detect
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_remote_name()
        self._validate_stale_days()
        self._validate_timeouts()
        self._validate_workers()

    def _validate_remote_name(self):
        """Validate remote_name is not empty."""
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")
        self.remote_name = self.remote_name.strip()

    def _validate_stale_days(self):
        """Validate stale_days is positive."""
        if self.stale_days <= 0:
            raise ValueError(f"stale_days must be positive, got {self.stale_days}")

    def _validate_timeouts(self):
        """Validate timeouts are positive."""
        for name in ("read_timeout", "write_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    def _validate_workers(self):
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
