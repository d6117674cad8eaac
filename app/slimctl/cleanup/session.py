"""Cleanup session wiring.

A CleanupSession owns the exclusion set, blacklist and removal engine
for one removal request and processes top-level targets one by one.
"""

import logging
from collections.abc import Callable, Iterable

from slimctl.cleanup.blacklist import BlacklistIndex, is_bundle_blacklisted
from slimctl.cleanup.exclusions import ExclusionSet
from slimctl.cleanup.models import RemovalOutcome, RemovalResult
from slimctl.cleanup.operator import RemovalEngine
from slimctl.cleanup.privilege import ROOT_UID, PrivilegeSwitcher
from slimctl.cleanup.progress import FileProgress, ProgressObserver, ProgressReporter
from slimctl.cleanup.trash import move_to_trash
from slimctl.core.config import RemovalRequest

logger = logging.getLogger(__name__)


class CleanupSession:
    """State shared by all removals of one request.

    Creating a session registers the trash directories of the acting user
    and of root as exclusions.

    Args:
        request: The removal request; its ``excludes`` list is extended.
        progress: Local progress counters, if any.
        remote: Remote progress observer, if any.
        rootless: Whether system-protected paths must be skipped.
        switcher: Effective-uid switcher.
        trash: Moves a path to the current effective user's trash.

    Raises:
        PrivilegeError: If the trash directories cannot be resolved under
            the acting user's or root's identity.
    """

    def __init__(
        self,
        request: RemovalRequest,
        *,
        progress: FileProgress | None = None,
        remote: ProgressObserver | None = None,
        rootless: bool = False,
        switcher: PrivilegeSwitcher | None = None,
        trash: Callable[[str], None] = move_to_trash,
    ) -> None:
        self.request = request
        self.switcher = switcher or PrivilegeSwitcher()
        self.exclusions = ExclusionSet(request, self.switcher)
        self.exclusions.initialize(request.uid, ROOT_UID)
        self.blacklist = BlacklistIndex()
        self.reporter = ProgressReporter(progress, remote)
        self.engine = RemovalEngine(
            request,
            exclusions=self.exclusions,
            blacklist=self.blacklist,
            reporter=self.reporter,
            switcher=self.switcher,
            rootless=rootless,
            trash=trash,
        )

    def add_code_resources(self, bundle_path: str) -> set[str]:
        """Protect the sealed resources of a bundle for the rest of the session."""
        return self.blacklist.scan_bundle(bundle_path)

    def is_directory_blacklisted(self, path: str) -> bool:
        """Check whether ``path`` is a bundle with a blacklisted identifier."""
        return is_bundle_blacklisted(path, self.request.bundle_blacklist)

    def remove(self, path: str) -> RemovalResult:
        """Remove one top-level target."""
        if self.is_directory_blacklisted(path):
            logger.debug("Skipping blacklisted bundle %s", path)
            return RemovalResult(path=path, outcome=RemovalOutcome.SKIPPED)
        return self.engine.remove(path)

    def process(self, targets: Iterable[str]) -> list[RemovalResult]:
        """Remove every target in order.

        A failing target never stops the run.

        Args:
            targets: Absolute paths of the targets.

        Returns:
            One RemovalResult per target.
        """
        return [self.remove(target) for target in targets]
