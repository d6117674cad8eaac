"""Cleanup domain models.

This module defines the outcome of removing one top-level target.
"""

from dataclasses import dataclass, field
from enum import Enum


class RemovalOutcome(str, Enum):
    """Terminal state of a removal.

    Attributes:
        DELETED: Target was removed permanently.
        TRASHED: Target was moved to a trash directory.
        SKIPPED: Target was left alone by policy (dry-run, blacklist, exclusion).
        FAILED: Removal was attempted and failed.
    """

    DELETED = "deleted"
    TRASHED = "trashed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Result of removing a single top-level target.

    Attributes:
        path: Target path that was operated on.
        outcome: Terminal state reached.
        error: Error message if the removal failed, None otherwise.
        used_fallback: Whether the target ended up in root's trash.
        sizes: Reclaimed bytes per affected file.
    """

    path: str
    outcome: RemovalOutcome
    error: str | None = None
    used_fallback: bool = False
    sizes: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate result data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)

    @property
    def success(self) -> bool:
        """Whether the target was deleted or trashed."""
        return self.outcome in (RemovalOutcome.DELETED, RemovalOutcome.TRASHED)

    @property
    def reclaimed_bytes(self) -> int:
        """Total bytes reclaimed by this removal."""
        return sum(self.sizes.values())
