"""Per-file progress reporting.

Every processed file is reported to a local FileProgress, which the
controlling layer polls or subscribes to, and forwarded to an optional
remote observer on the other side of the process boundary.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from slimctl.cleanup.bundle import localized_display_name

logger = logging.getLogger(__name__)

APP_EXTENSION = ".app"


class ProgressObserver(Protocol):
    """Receiver of per-file notifications, usually in another process."""

    def processed(self, file: str, size: int, app_name: str | None) -> None:
        """Called once per processed file."""
        ...


@dataclass(slots=True)
class FileProgress:
    """Mutable progress counters for a cleanup run.

    Attributes:
        files_completed: Number of files reported so far.
        current_file: Path of the most recently reported file.
        size_difference: Reclaimed bytes of the most recent file.
        app_name: Application the most recent file belongs to, if known.
        total_unit_count: Total bytes known so far.
        completed_unit_count: Bytes reclaimed so far.
    """

    files_completed: int = 0
    current_file: str | None = None
    size_difference: int = 0
    app_name: str | None = None
    total_unit_count: int = 0
    completed_unit_count: int = 0
    _subscribers: list[Callable[[FileProgress], None]] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def subscribe(self, callback: Callable[[FileProgress], None]) -> None:
        """Register a callback invoked after every update."""
        self._subscribers.append(callback)

    def notify(self) -> None:
        """Signal subscribers that the counters changed."""
        for callback in self._subscribers:
            try:
                callback(self)
            except Exception:
                logger.exception("Progress subscriber failed")


def app_name_for_path(path: str) -> str | None:
    """Derive the application a file belongs to.

    Finds the first path component ending in ``.app`` and prefers the
    bundle's localized display name, falling back to the component name
    without its extension.

    Args:
        path: Absolute file path.

    Returns:
        Application name, or None if the file is not inside an app bundle.
    """
    parts = path.split(os.sep)
    for i, part in enumerate(parts):
        if not part.endswith(APP_EXTENSION):
            continue
        bundle_path = os.sep.join(parts[: i + 1]) or os.sep
        try:
            display_name = localized_display_name(bundle_path)
        except Exception:
            logger.debug("Cannot read display name of %s", bundle_path, exc_info=True)
            display_name = None
        if display_name:
            return display_name
        return part[: -len(APP_EXTENSION)]
    return None


class ProgressReporter:
    """Fans per-file events out to the local progress and a remote observer.

    Args:
        progress: Local progress counters, if any.
        remote: Remote observer, if any.
    """

    def __init__(
        self,
        progress: FileProgress | None = None,
        remote: ProgressObserver | None = None,
    ) -> None:
        self.progress = progress
        self.remote = remote

    def report(self, path: str, size: int) -> None:
        """Report one processed file. Never raises.

        Args:
            path: Absolute path of the processed file.
            size: Bytes reclaimed by processing it.
        """
        app_name = app_name_for_path(path)

        progress = self.progress
        if progress is not None:
            progress.files_completed += 1
            progress.current_file = path
            progress.size_difference = size
            if app_name is not None:
                progress.app_name = app_name
            progress.total_unit_count += size
            progress.completed_unit_count += size
            # notify even for zero-byte files so observers see them
            progress.notify()

        if self.remote is not None:
            try:
                self.remote.processed(path, size, app_name)
            except Exception:
                logger.exception("Remote progress observer failed for %s", path)
