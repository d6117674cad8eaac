"""Recursive removal with caller-supplied decision hooks."""

import os
import stat
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RemovalHooks:
    """Decisions consulted while removing a tree.

    Attributes:
        should_process: Called for every entry before it is removed;
            returning False leaves the entry (and, for a directory, its
            whole subtree) in place.
        should_continue_after_error: Called when removing an entry fails;
            returning True skips the entry and carries on with its siblings.
    """

    should_process: Callable[[str], bool]
    should_continue_after_error: Callable[[str, OSError], bool]


def allocated_size(path: str) -> int | None:
    """Bytes allocated on disk for a single entry (not recursive).

    Uses the block count where the platform reports one and the logical
    size otherwise. Symlinks are not followed.

    Returns:
        Allocated size in bytes, or None if the entry cannot be stat'ed.
    """
    try:
        st = os.lstat(path)
    except OSError:
        return None
    blocks = getattr(st, "st_blocks", None)
    if blocks is None:
        return st.st_size
    return blocks * 512


def remove_tree(path: str, hooks: RemovalHooks) -> bool:
    """Remove ``path`` and everything below it, consulting ``hooks``.

    Entries are offered to ``should_process`` top-down and removed
    bottom-up. Failures below ``path`` go to
    ``should_continue_after_error``; a failure on ``path`` itself is
    raised. A directory whose children were skipped therefore fails
    with ``ENOTEMPTY``.

    Args:
        path: Entry to remove.
        hooks: Decision hooks.

    Returns:
        False if ``should_process`` vetoed ``path`` itself, True otherwise.

    Raises:
        OSError: If ``path`` itself cannot be removed.
    """
    if not hooks.should_process(path):
        return False

    st = os.lstat(path)
    if not stat.S_ISDIR(st.st_mode):
        os.unlink(path)
        return True

    for name in sorted(os.listdir(path)):
        child = os.path.join(path, name)
        try:
            remove_tree(child, hooks)
        except OSError as e:
            if not hooks.should_continue_after_error(child, e):
                raise

    os.rmdir(path)
    return True
