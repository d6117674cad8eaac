"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
import plistlib
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from slimctl.cleanup.privilege import PrivilegeSwitcher
from slimctl.core.config import RemovalRequest


class RecordingSwitcher(PrivilegeSwitcher):
    """Privilege switcher that records requested uids without switching."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    def with_user_privilege(self, uid, action):  # type: ignore[no-untyped-def]
        self.calls.append(uid)
        return action()


class FakeTrash:
    """Trash callable that moves paths into a directory.

    Attributes:
        trash_dir: Directory receiving trashed paths.
        fail_times: Number of leading calls that raise PermissionError.
        calls: Paths passed to every call, in order.
    """

    def __init__(self, trash_dir: Path, fail_times: int = 0) -> None:
        self.trash_dir = trash_dir
        self.fail_times = fail_times
        self.calls: list[str] = []

    def __call__(self, path: str) -> None:
        self.calls.append(path)
        if len(self.calls) <= self.fail_times:
            raise PermissionError(13, "Permission denied", path)
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(path, self.trash_dir / os.path.basename(path))


@pytest.fixture
def switcher() -> RecordingSwitcher:
    """Privilege switcher that never touches the real effective uid."""
    return RecordingSwitcher()


@pytest.fixture
def request_factory() -> Callable[..., RemovalRequest]:
    """Build removal requests acting as the current user."""

    def _make(**kwargs: Any) -> RemovalRequest:
        kwargs.setdefault("uid", os.getuid())
        return RemovalRequest(**kwargs)

    return _make


@pytest.fixture
def make_bundle(tmp_path: Path) -> Callable[..., Path]:
    """Create an application bundle with an optional code signature."""

    def _make(
        name: str = "Example.app",
        *,
        files: dict[str, Any] | None = None,
        files2: dict[str, Any] | None = None,
        info: dict[str, Any] | None = None,
        deep: bool = True,
    ) -> Path:
        bundle = tmp_path / name
        base = bundle / "Contents" if deep else bundle
        base.mkdir(parents=True)
        if info is not None:
            with open(base / "Info.plist", "wb") as f:
                plistlib.dump(info, f)
        if files is not None or files2 is not None:
            resources: dict[str, Any] = {}
            if files is not None:
                resources["files"] = files
            if files2 is not None:
                resources["files2"] = files2
            (base / "_CodeSignature").mkdir()
            with open(base / "_CodeSignature" / "CodeResources", "wb") as f:
                plistlib.dump(resources, f)
        return bundle

    return _make


@pytest.fixture
def trash_factory(tmp_path: Path) -> Callable[..., FakeTrash]:
    """Build fake trash callables backed by a temporary directory."""

    def _make(fail_times: int = 0) -> FakeTrash:
        return FakeTrash(tmp_path / "Trash", fail_times=fail_times)

    return _make
