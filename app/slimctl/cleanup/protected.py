"""System paths that even the superuser cannot modify in rootless mode.

With System Integrity Protection enabled, files carrying the
``SF_RESTRICTED`` flag and the core system locations are read-only for
every identity. The removal hooks skip them so a bulk delete does not
waste time on entries that are bound to fail.
"""

import fnmatch
import logging
import os
import stat
import subprocess

from slimctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# System-owned path patterns (glob-style), matched as-is.
PROTECTED_SYSTEM_PATTERNS: tuple[str, ...] = (
    "/System",
    "/System/*",
    "/bin/*",
    "/sbin/*",
    "/usr/bin/*",
    "/usr/sbin/*",
    "/usr/lib/*",
    "/usr/libexec/*",
    "/usr/share/*",
)

# Not every Python build exposes the BSD restricted flag.
SF_RESTRICTED: int = getattr(stat, "SF_RESTRICTED", 0x00080000)


def has_restricted_flag(path: str) -> bool:
    """Check whether ``path`` carries the ``SF_RESTRICTED`` file flag.

    Returns False on platforms without BSD file flags or when the entry
    cannot be stat'ed.
    """
    try:
        st = os.lstat(path)
    except OSError:
        return False
    return bool(getattr(st, "st_flags", 0) & SF_RESTRICTED)


def is_protected_path(path: str) -> bool:
    """Check if a path is protected by the operating system.

    Args:
        path: Absolute filesystem path to check.

    Returns:
        True if the path matches a system pattern or is flagged restricted.
    """
    for pattern in PROTECTED_SYSTEM_PATTERNS:
        if fnmatch.fnmatch(path, pattern):
            return True
    return has_restricted_flag(path)


def detect_rootless() -> bool:
    """Report whether System Integrity Protection is enabled.

    Runs ``csrutil status``; platforms without ``csrutil`` are never
    rootless.

    Returns:
        True if SIP reports itself as enabled.
    """
    if not command_exists("csrutil"):
        return False

    try:
        result = run_command(["csrutil", "status"], timeout=10.0)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Cannot query SIP status: %s", e)
        return False

    return result.success and "enabled" in result.stdout.lower()
