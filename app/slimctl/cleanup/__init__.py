"""Privileged cleanup module.

This module provides the removal engine of the cleanup helper: exclusion
prefixes, code-signature blacklisting, scoped privilege switching,
trash relocation and permanent deletion, and progress reporting.
"""

from slimctl.cleanup.blacklist import BlacklistIndex, is_bundle_blacklisted
from slimctl.cleanup.codesign import CodeSignatureManifest, ManifestVersion, load_code_resources
from slimctl.cleanup.exclusions import ExclusionSet
from slimctl.cleanup.models import RemovalOutcome, RemovalResult
from slimctl.cleanup.operator import RelocationError, RemovalEngine
from slimctl.cleanup.privilege import ROOT_UID, PrivilegeError, PrivilegeSwitcher
from slimctl.cleanup.progress import FileProgress, ProgressObserver, ProgressReporter
from slimctl.cleanup.protected import PROTECTED_SYSTEM_PATTERNS, detect_rootless, is_protected_path
from slimctl.cleanup.session import CleanupSession
from slimctl.cleanup.trash import move_to_trash

__all__ = [
    "PROTECTED_SYSTEM_PATTERNS",
    "ROOT_UID",
    "BlacklistIndex",
    "CleanupSession",
    "CodeSignatureManifest",
    "ExclusionSet",
    "FileProgress",
    "ManifestVersion",
    "PrivilegeError",
    "PrivilegeSwitcher",
    "ProgressObserver",
    "ProgressReporter",
    "RelocationError",
    "RemovalEngine",
    "RemovalOutcome",
    "RemovalResult",
    "detect_rootless",
    "is_bundle_blacklisted",
    "is_protected_path",
    "load_code_resources",
    "move_to_trash",
]
