"""Files that must never be removed because a code signature seals them.

Removing a sealed resource breaks the bundle's signature, so every
non-optional file listed in a bundle's CodeResources is protected,
whatever the locale or architecture policy says about it.
"""

import logging
from collections.abc import Collection

from slimctl.cleanup.bundle import read_bundle_identifier
from slimctl.cleanup.codesign import load_code_resources

logger = logging.getLogger(__name__)


class BlacklistIndex:
    """Accumulated set of protected file paths for one session.

    Paths from every scanned bundle are merged; the set only grows and is
    queried by exact path equality.
    """

    def __init__(self) -> None:
        self._paths: set[str] = set()

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def scan_bundle(self, bundle_path: str) -> set[str]:
        """Add a bundle's sealed resources to the blacklist.

        Unsigned bundles and unreadable manifests contribute nothing; this
        never fails.

        Args:
            bundle_path: Absolute path of the bundle directory.

        Returns:
            Protected paths found in this bundle.
        """
        manifest = load_code_resources(bundle_path)
        if manifest is None:
            return set()

        protected = manifest.protected_paths()
        self._paths.update(protected)
        logger.debug("Blacklisted %d sealed files of %s", len(protected), bundle_path)
        return protected

    def is_blacklisted(self, path: str) -> bool:
        """Check whether ``path`` is a protected file of any scanned bundle."""
        return path in self._paths


def is_bundle_blacklisted(path: str, identifiers: Collection[str]) -> bool:
    """Check whether ``path`` is a bundle whose identifier is blacklisted.

    Args:
        path: Directory that may be a bundle.
        identifiers: Blacklisted bundle identifiers.

    Returns:
        True if the bundle's ``CFBundleIdentifier`` is in ``identifiers``.
    """
    if not identifiers:
        return False
    identifier = read_bundle_identifier(path)
    return identifier is not None and identifier in identifiers
