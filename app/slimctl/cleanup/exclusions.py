"""Path prefixes that the removal engine must never touch."""

import logging
import os

from slimctl.cleanup.privilege import ROOT_UID, PrivilegeSwitcher
from slimctl.core.config import RemovalRequest
from slimctl.core.paths import trash_directories

logger = logging.getLogger(__name__)


class ExclusionSet:
    """Ordered set of excluded path prefixes.

    The prefixes live in the request's ``excludes`` list, which is shared
    with the caller. Prefixes are only ever appended, and membership is a
    literal string-prefix test without any normalization.

    Args:
        request: Request whose ``excludes`` list backs this set.
        switcher: Privilege switcher used to resolve per-user trash locations.
    """

    def __init__(self, request: RemovalRequest, switcher: PrivilegeSwitcher | None = None) -> None:
        self._request = request
        self._switcher = switcher or PrivilegeSwitcher()

    @property
    def prefixes(self) -> list[str]:
        """Registered prefixes, in insertion order."""
        return self._request.excludes

    def initialize(self, acting_uid: int, root_uid: int = ROOT_UID) -> None:
        """Register the trash directories of the acting user and root.

        Each identity is assumed in turn while its trash location is
        resolved, so both trash directories are excluded regardless of
        which identity is active later on.

        Args:
            acting_uid: Id of the user on whose behalf files are removed.
            root_uid: Id of the superuser.

        Raises:
            PrivilegeError: If an identity switch fails.
        """
        for uid in (acting_uid, root_uid):
            trash_dirs = self._switcher.with_user_privilege(
                uid, lambda: trash_directories(os.geteuid())
            )
            for trash_dir in trash_dirs:
                logger.debug("Excluding trash directory %s", trash_dir)
                self.add_prefix(trash_dir)

    def add_prefix(self, path: str) -> None:
        """Register an excluded prefix. Duplicates are harmless."""
        self._request.excludes.append(path)

    def is_excluded(self, path: str) -> bool:
        """Check whether ``path`` starts with any registered prefix.

        Args:
            path: Already-resolved absolute path.

        Returns:
            True if the path lies under an excluded prefix.
        """
        return any(path.startswith(prefix) for prefix in self._request.excludes)
