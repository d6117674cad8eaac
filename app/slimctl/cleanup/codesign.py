"""Code-signature resource manifests.

A signed bundle lists the files sealed by its signature in
``_CodeSignature/CodeResources``, a property list whose resource
directory comes in two schema versions: the legacy ``files`` table and
the revised ``files2`` table (TN2206). Both are normalized into one
manifest of resource entries when the file is loaded.
"""

from __future__ import annotations

import logging
import os
import plistlib
from dataclasses import dataclass
from enum import Enum
from typing import Any
from xml.parsers.expat import ExpatError

logger = logging.getLogger(__name__)

CONTENTS_DIR = "Contents"
CODE_RESOURCES = os.path.join("_CodeSignature", "CodeResources")


class ManifestVersion(str, Enum):
    """Schema version of a resource table.

    Attributes:
        LEGACY: Version 1 ``files`` table.
        REVISED: Version 2 ``files2`` table.
    """

    LEGACY = "files"
    REVISED = "files2"


@dataclass(frozen=True, slots=True)
class ResourceEntry:
    """A single sealed resource.

    Attributes:
        relative_path: Path relative to the bundle's resource base.
        optional: Whether the resource may legitimately be absent.
        version: Resource table the entry was read from.
    """

    relative_path: str
    optional: bool
    version: ManifestVersion

    def __post_init__(self) -> None:
        """Validate resource entry data after initialization."""
        if not self.relative_path:
            msg = "Resource path cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class CodeSignatureManifest:
    """Resource entries of one bundle, merged across schema versions.

    Attributes:
        base: Directory the relative resource paths are rooted at.
        entries: All entries from every resource table present.
    """

    base: str
    entries: tuple[ResourceEntry, ...]

    @classmethod
    def from_resource_directory(cls, base: str, resources: dict[str, Any]) -> CodeSignatureManifest:
        """Build a manifest from a decoded resource directory.

        Args:
            base: Directory the resource paths are rooted at.
            resources: Top-level dictionary of a CodeResources property list.

        Returns:
            CodeSignatureManifest containing entries from both tables.
        """
        entries: list[ResourceEntry] = []
        for version in ManifestVersion:
            table = resources.get(version.value)
            if not isinstance(table, dict):
                continue
            for key, value in table.items():
                # legacy entries may be a bare digest
                optional = isinstance(value, dict) and value.get("optional") is True
                entries.append(ResourceEntry(relative_path=key, optional=optional, version=version))
        return cls(base=base, entries=tuple(entries))

    def protected_paths(self) -> set[str]:
        """Absolute paths of every non-optional resource."""
        return {
            os.path.join(self.base, entry.relative_path)
            for entry in self.entries
            if not entry.optional
        }


def resource_base(bundle_path: str) -> str:
    """Directory a bundle's resources are rooted at.

    Deep bundles keep everything under ``Contents``; shallow bundles use
    the bundle directory itself.
    """
    contents = os.path.join(bundle_path, CONTENTS_DIR)
    if os.path.exists(contents):
        return contents
    return bundle_path


def load_code_resources(bundle_path: str) -> CodeSignatureManifest | None:
    """Read the code-signature manifest of a bundle.

    Args:
        bundle_path: Absolute path of the bundle directory.

    Returns:
        The merged manifest, or None if the bundle is unsigned or its
        manifest cannot be read.
    """
    base = resource_base(bundle_path)
    manifest_path = os.path.join(base, CODE_RESOURCES)

    try:
        with open(manifest_path, "rb") as f:
            resources = plistlib.load(f)
    except FileNotFoundError:
        logger.debug("No code signature for %s", bundle_path)
        return None
    except (OSError, ExpatError, ValueError) as e:
        logger.debug("Cannot read code signature of %s: %s", bundle_path, e)
        return None

    if not isinstance(resources, dict):
        logger.debug("Unexpected code signature layout in %s", manifest_path)
        return None

    return CodeSignatureManifest.from_resource_directory(base, resources)
