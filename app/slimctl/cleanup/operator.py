"""Privilege-aware removal of cleanup targets.

Handles permanent deletion and trash relocation of one top-level target
at a time, with dry-run support, blacklist and exclusion checks, and
fallback from the acting user's trash to root's trash.
"""

import errno
import logging
import os
import stat
from collections.abc import Callable

from slimctl.cleanup.blacklist import BlacklistIndex
from slimctl.cleanup.exclusions import ExclusionSet
from slimctl.cleanup.models import RemovalOutcome, RemovalResult
from slimctl.cleanup.privilege import PrivilegeError, PrivilegeSwitcher
from slimctl.cleanup.progress import ProgressReporter
from slimctl.cleanup.protected import is_protected_path
from slimctl.cleanup.remover import RemovalHooks, allocated_size, remove_tree
from slimctl.cleanup.trash import move_to_trash
from slimctl.core.config import RemovalRequest

logger = logging.getLogger(__name__)

# rmdir may report a non-empty directory with either code (POSIX)
_NOT_EMPTY = (errno.ENOTEMPTY, errno.EEXIST)


class RelocationError(Exception):
    """Raised when a target could be moved to neither trash.

    Attributes:
        path: Target that could not be moved.
        primary: Error from the acting user's trash attempt.
        fallback: Error from root's trash attempt.
    """

    def __init__(self, path: str, primary: OSError, fallback: OSError) -> None:
        super().__init__(f"Cannot move {path} to trash: {fallback}")
        self.path = path
        self.primary = primary
        self.fallback = fallback


class RemovalEngine:
    """Removes cleanup targets on behalf of the acting user.

    Permanent deletion runs as root and skips blacklisted files one by
    one. Trash relocation is all-or-nothing: a single blacklisted file
    below the target keeps the whole target in place.

    Args:
        request: Session request (acting uid, dry-run and trash flags).
        exclusions: Excluded path prefixes.
        blacklist: Protected files of the scanned bundles.
        reporter: Receiver of per-file progress.
        switcher: Effective-uid switcher used for the user's trash.
        rootless: Whether system-protected paths must be skipped.
        trash: Moves a path to the current effective user's trash.
    """

    def __init__(
        self,
        request: RemovalRequest,
        *,
        exclusions: ExclusionSet,
        blacklist: BlacklistIndex,
        reporter: ProgressReporter,
        switcher: PrivilegeSwitcher | None = None,
        rootless: bool = False,
        trash: Callable[[str], None] = move_to_trash,
    ) -> None:
        self._request = request
        self._exclusions = exclusions
        self._blacklist = blacklist
        self._reporter = reporter
        self._switcher = switcher or PrivilegeSwitcher()
        self._rootless = rootless
        self._trash_item = trash

    def remove(self, path: str) -> RemovalResult:
        """Remove a single top-level target.

        Never raises for filesystem or privilege failures; they are logged
        and reported as a FAILED result.

        Args:
            path: Absolute path of the target.

        Returns:
            RemovalResult describing the terminal state.
        """
        if self._exclusions.is_excluded(path):
            logger.debug("Skipping excluded path %s", path)
            return RemovalResult(path=path, outcome=RemovalOutcome.SKIPPED)

        if self._request.trash:
            try:
                return self._move_to_trash(path)
            except PrivilegeError as e:
                logger.error("Error trashing '%s': %s", path, e)
                return RemovalResult(path=path, outcome=RemovalOutcome.FAILED, error=str(e))

        return self._delete(path)

    # -- removal hooks -----------------------------------------------------

    def hooks(self, sizes: dict[str, int] | None = None) -> RemovalHooks:
        """Build the decision hooks for a recursive delete.

        Args:
            sizes: Optional mapping filled with the size of every entry
                reported as processed.
        """
        return RemovalHooks(
            should_process=lambda path: self.should_process(path, sizes),
            should_continue_after_error=self.should_continue_after_error,
        )

    def should_process(self, path: str, sizes: dict[str, int] | None = None) -> bool:
        """Decide whether an entry may be removed, reporting it if so.

        Progress is reported here, before the removal is attempted, so an
        entry whose removal later fails is still counted.
        """
        if (
            self._request.dry_run
            or self._blacklist.is_blacklisted(path)
            or self._exclusions.is_excluded(path)
            or (self._rootless and is_protected_path(path))
        ):
            return False

        # directories are removed but never counted as reclaimed files
        if os.path.isdir(path) and not os.path.islink(path):
            return True

        size = allocated_size(path)
        if size is not None:
            if sizes is not None:
                sizes[path] = size
            self._reporter.report(path, size)
        return True

    def should_continue_after_error(self, path: str, error: OSError) -> bool:
        """Errors on single entries never stop a bulk delete."""
        logger.debug("Cannot remove %s: %s", path, error)
        return True

    # -- permanent deletion ------------------------------------------------

    def _delete(self, path: str) -> RemovalResult:
        sizes: dict[str, int] = {}
        try:
            processed = remove_tree(path, self.hooks(sizes))
        except OSError as e:
            if e.errno in _NOT_EMPTY:
                # blacklisted descendants were left in place
                logger.debug("Kept non-empty directory %s", path)
                return RemovalResult(path=path, outcome=RemovalOutcome.DELETED, sizes=sizes)
            logger.error("Error removing '%s': %s", path, e)
            return RemovalResult(
                path=path, outcome=RemovalOutcome.FAILED, error=str(e), sizes=sizes
            )

        if not processed:
            return RemovalResult(path=path, outcome=RemovalOutcome.SKIPPED)
        return RemovalResult(path=path, outcome=RemovalOutcome.DELETED, sizes=sizes)

    # -- trash relocation --------------------------------------------------

    def _move_to_trash(self, path: str) -> RemovalResult:
        if self._request.dry_run:
            return RemovalResult(path=path, outcome=RemovalOutcome.SKIPPED)

        sizes = self._prescan(path)
        if sizes is None:
            logger.info("Keeping %s: it contains blacklisted files", path)
            return RemovalResult(path=path, outcome=RemovalOutcome.SKIPPED)

        parent = os.path.dirname(path)
        try:
            parent_stat: os.stat_result | None = os.stat(parent)
        except OSError:
            parent_stat = None

        try:
            self._take_ownership(path)
            self._take_ownership(parent)
        except OSError as e:
            logger.warning("Failed to set owner: %s", e)

        try:
            used_fallback = self._relocate(path)
        except RelocationError as e:
            logger.error("Error trashing '%s': %s", path, e.fallback)
            return RemovalResult(path=path, outcome=RemovalOutcome.FAILED, error=str(e))
        finally:
            if parent_stat is not None:
                self._restore_attributes(parent, parent_stat)

        for file_path, size in sizes.items():
            self._reporter.report(file_path, size)
        return RemovalResult(
            path=path, outcome=RemovalOutcome.TRASHED, used_fallback=used_fallback, sizes=sizes
        )

    def _prescan(self, path: str) -> dict[str, int] | None:
        """Record sizes below ``path`` and hand every entry to the acting user.

        Returns:
            Allocated size per file, or None if ``path`` or anything below
            it is blacklisted.
        """
        if self._blacklist.is_blacklisted(path):
            return None

        sizes: dict[str, int] = {}
        if not os.path.isdir(path) or os.path.islink(path):
            size = allocated_size(path)
            if size is not None:
                sizes[path] = size
            return sizes

        entries = [
            os.path.join(root, name) for root, dirs, files in os.walk(path) for name in dirs + files
        ]
        if any(self._blacklist.is_blacklisted(entry) for entry in entries):
            return None

        for entry in entries:
            try:
                st = os.lstat(entry)
            except OSError as e:
                logger.debug("Cannot stat %s: %s", entry, e)
                continue
            is_dir = stat.S_ISDIR(st.st_mode)
            if not is_dir:
                size = allocated_size(entry)
                if size is not None:
                    sizes[entry] = size
            # the acting user must own everything to move it to their trash
            try:
                os.lchown(entry, self._request.uid, -1)
                if is_dir:
                    os.chmod(entry, stat.S_IRWXU)
            except OSError as e:
                logger.debug("Cannot change owner of %s: %s", entry, e)
        return sizes

    def _relocate(self, path: str) -> bool:
        """Move ``path`` to the acting user's trash, else to root's.

        Returns:
            True if root's trash had to be used.

        Raises:
            PrivilegeError: If the identity switch fails.
            RelocationError: If both attempts fail.
        """
        try:
            self._switcher.with_user_privilege(self._request.uid, lambda: self._trash_item(path))
            return False
        except PrivilegeError:
            raise
        except OSError as primary:
            logger.warning("Could not move %s to trash: %s", path, primary)
            try:
                self._trash_item(path)
            except OSError as fallback:
                raise RelocationError(path, primary, fallback) from fallback
            return True

    def _take_ownership(self, path: str) -> None:
        os.lchown(path, self._request.uid, -1)
        if not os.path.islink(path):
            os.chmod(path, stat.S_IRWXU)

    def _restore_attributes(self, path: str, st: os.stat_result) -> None:
        try:
            os.chown(path, st.st_uid, st.st_gid)
            os.chmod(path, stat.S_IMODE(st.st_mode))
        except OSError as e:
            logger.debug("Cannot restore attributes of %s: %s", path, e)
