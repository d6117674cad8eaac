"""Move paths into the trash of the current effective user.

send2trash resolves the freedesktop trash from ``$HOME`` and the real uid
when it is imported, which is the superuser's trash for the whole life of
the helper. Outside macOS the destination is therefore taken from
``trash_directories(os.geteuid())``, the same lookup that registers the
trash exclusions, and the move itself is left to send2trash.
"""

import errno
import os
import sys

from send2trash import send2trash

from slimctl.core.paths import trash_directories


def move_to_trash(path: str) -> None:
    """Move ``path`` into the trash of the current effective user.

    Args:
        path: Absolute path of the file or directory to move.

    Raises:
        OSError: If the path cannot be moved or the user has no trash.
    """
    if sys.platform == "darwin":
        send2trash(path)
        return

    # imported lazily, the module is only meant for freedesktop platforms
    from send2trash import plat_other

    uid = os.geteuid()
    trash_dirs = trash_directories(uid)
    if not trash_dirs:
        raise OSError(errno.ENOENT, f"No trash directory for uid {uid}", path)

    src = os.fsencode(path)
    if not os.path.lexists(src):
        raise FileNotFoundError(errno.ENOENT, "File not found", path)

    dst = os.fsencode(trash_dirs[0])
    topdir = os.path.dirname(dst)
    try:
        plat_other.trash_move(src, dst, topdir)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        plat_other.trash_move(src, dst, topdir, cross_dev=True)
