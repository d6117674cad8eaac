"""Scoped effective-user switching.

The effective uid is process-global state, so all switches made through
this module are serialized by a single lock shared by every
PrivilegeSwitcher instance. Only scoped acquisition is exposed; callers
never set the effective uid directly.
"""

import logging
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

logger = logging.getLogger(__name__)

ROOT_UID = 0

T = TypeVar("T")

_EUID_LOCK = threading.Lock()
_owner: int | None = None


class PrivilegeError(OSError):
    """Raised when the effective user id cannot be switched."""


class PrivilegeSwitcher:
    """Runs actions under a user's effective identity.

    The prior effective uid (root for the privileged helper) is restored
    when the scope ends, whether the action returned or raised. Nesting is
    not supported: a re-entrant call from the thread already holding the
    scope raises PrivilegeError instead of deadlocking.
    """

    @contextmanager
    def scope(self, uid: int) -> Iterator[None]:
        """Switch the effective uid to ``uid`` for the duration of the block.

        Args:
            uid: Effective user id to assume.

        Raises:
            PrivilegeError: If the switch or the restoration fails, or if
                called re-entrantly.
        """
        global _owner

        if _owner == threading.get_ident():
            msg = "Nested privilege scopes are not supported"
            raise PrivilegeError(msg)

        with _EUID_LOCK:
            _owner = threading.get_ident()
            try:
                prior = os.geteuid()
                _switch(uid)
                try:
                    yield
                finally:
                    _switch(prior)
            finally:
                _owner = None

    def with_user_privilege(self, uid: int, action: Callable[[], T]) -> T:
        """Execute ``action`` with the effective uid set to ``uid``.

        Args:
            uid: Effective user id to assume.
            action: Zero-argument callable to run.

        Returns:
            Whatever ``action`` returns.

        Raises:
            PrivilegeError: If the identity switch fails.
            Exception: Any exception raised by ``action``, after the prior
                identity has been restored.
        """
        with self.scope(uid):
            return action()


def _switch(uid: int) -> None:
    if os.geteuid() == uid:
        return
    try:
        os.seteuid(uid)
    except OSError as e:
        logger.error("Failed to set effective uid to %d: %s", uid, e)
        raise PrivilegeError(e.errno, f"Cannot switch effective uid to {uid}") from e
