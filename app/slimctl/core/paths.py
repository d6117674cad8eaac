"""Path management for slimctl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration storage, and resolves the per-user trash
locations that the removal engine must never descend into.

XDG defaults:
- Config: ~/.config/slimctl/
"""

import os
import pwd
import sys
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "slimctl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/slimctl/ (or XDG_CONFIG_HOME/slimctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_request_path() -> Path:
    """Get the default removal request file path.

    Returns:
        Path to ~/.config/slimctl/request.toml.
    """
    return get_config_dir() / "request.toml"


# =============================================================================
# Trash locations
# =============================================================================


def home_directory(uid: int) -> Path:
    """Look up the home directory of a user in the password database.

    Args:
        uid: Numeric user id.

    Returns:
        The user's home directory.

    Raises:
        KeyError: If no password entry exists for ``uid``.
    """
    return Path(pwd.getpwuid(uid).pw_dir)


def trash_directories(uid: int) -> list[str]:
    """Resolve the trash directories owned by a user.

    On macOS this is ``~/.Trash``. Elsewhere the XDG trash under the data
    home is used; ``XDG_DATA_HOME`` is only honoured for the invoking user,
    since the environment describes that user and nobody else.

    Paths are returned as strings without a trailing separator, so they can
    be used directly as exclusion prefixes.

    Args:
        uid: Numeric user id whose trash should be located.

    Returns:
        List of absolute trash directory paths (empty if the user is unknown).
    """
    try:
        home = home_directory(uid)
    except KeyError:
        return []

    if sys.platform == "darwin":
        return [str(home / ".Trash")]

    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home and uid == os.getuid():
        return [str(Path(data_home) / "Trash")]
    return [str(home / ".local" / "share" / "Trash")]
