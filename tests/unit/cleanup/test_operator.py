"""Unit tests for RemovalEngine.

Tests trash relocation with fallback, all-or-nothing blacklist vetoes,
ownership staging and restoration, dry-run handling, permanent deletion
with per-file skipping, and progress reporting.
"""

import os
import stat
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from slimctl.cleanup.blacklist import BlacklistIndex
from slimctl.cleanup.exclusions import ExclusionSet
from slimctl.cleanup.models import RemovalOutcome
from slimctl.cleanup.operator import RelocationError, RemovalEngine
from slimctl.cleanup.privilege import PrivilegeError
from slimctl.cleanup.progress import FileProgress, ProgressReporter
from slimctl.cleanup.remover import allocated_size, remove_tree
from slimctl.core.config import RemovalRequest


class BlacklistStub(BlacklistIndex):
    """Blacklist with explicitly listed paths."""

    def __init__(self, *paths: Path) -> None:
        super().__init__()
        self._paths.update(str(p) for p in paths)


@pytest.fixture
def locale_dir(tmp_path: Path) -> Path:
    """Target directory two levels deep: fr.lproj/sub/{a.nib,b.strings}."""
    parent = tmp_path / "App.app" / "Contents" / "Resources"
    target = parent / "fr.lproj"
    (target / "sub").mkdir(parents=True)
    (target / "sub" / "a.nib").write_bytes(b"a" * 100)
    (target / "b.strings").write_bytes(b"b" * 50)
    os.chmod(parent, 0o755)
    return target


def _make_engine(
    request: RemovalRequest,
    switcher,  # type: ignore[no-untyped-def]
    trash: Callable[[str], None] | None = None,
    blacklist: BlacklistIndex | None = None,
    rootless: bool = False,
) -> tuple[RemovalEngine, FileProgress, MagicMock]:
    progress = FileProgress()
    remote = MagicMock()
    engine = RemovalEngine(
        request,
        exclusions=ExclusionSet(request, switcher),
        blacklist=blacklist or BlacklistIndex(),
        reporter=ProgressReporter(progress, remote),
        switcher=switcher,
        rootless=rootless,
        trash=trash or MagicMock(),
    )
    return engine, progress, remote


def _files_below(path: Path) -> dict[str, int | None]:
    return {str(p): allocated_size(str(p)) for p in path.rglob("*") if not p.is_dir()}


class TestTrash:
    """Tests for trash relocation."""

    def test_moves_to_user_trash(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """Success under the acting user's identity yields TRASHED."""
        request = request_factory(trash=True)
        trash = trash_factory()
        expected = _files_below(locale_dir)
        engine, progress, remote = _make_engine(request, switcher, trash)

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.TRASHED
        assert result.used_fallback is False
        assert result.error is None
        assert switcher.calls == [request.uid]
        assert trash.calls == [str(locale_dir)]
        assert not locale_dir.exists()
        assert (trash.trash_dir / "fr.lproj" / "sub" / "a.nib").exists()
        assert result.sizes == expected
        assert progress.files_completed == 2
        reported = {c.args[0]: c.args[1] for c in remote.processed.call_args_list}
        assert reported == expected

    def test_falls_back_to_root_trash(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """A failed user-trash attempt is retried as root."""
        trash = trash_factory(fail_times=1)
        engine, progress, _ = _make_engine(request_factory(trash=True), switcher, trash)

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.TRASHED
        assert result.used_fallback is True
        assert trash.calls == [str(locale_dir), str(locale_dir)]
        assert len(switcher.calls) == 1
        assert progress.files_completed == 2

    def test_both_attempts_fail(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """Failure of both trashes yields FAILED and reports nothing."""
        trash = trash_factory(fail_times=2)
        engine, progress, remote = _make_engine(request_factory(trash=True), switcher, trash)

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.FAILED
        assert result.error is not None
        assert "Permission denied" in result.error
        assert locale_dir.exists()
        assert progress.files_completed == 0
        remote.processed.assert_not_called()

    def test_parent_attributes_restored(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """The parent's mode and owner are restored after relocation."""
        parent = locale_dir.parent
        before = parent.stat()
        engine, _, _ = _make_engine(request_factory(trash=True), switcher, trash_factory())

        engine.remove(str(locale_dir))

        after = parent.stat()
        assert stat.S_IMODE(after.st_mode) == 0o755
        assert (after.st_uid, after.st_gid) == (before.st_uid, before.st_gid)

    def test_parent_attributes_restored_on_failure(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """The parent's mode is restored even when relocation fails."""
        engine, _, _ = _make_engine(
            request_factory(trash=True), switcher, trash_factory(fail_times=2)
        )

        engine.remove(str(locale_dir))

        assert stat.S_IMODE(locale_dir.parent.stat().st_mode) == 0o755

    def test_descendant_directories_opened_for_owner(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """Directories below the target get full owner permissions."""
        os.chmod(locale_dir / "sub", 0o555)
        trash = trash_factory()
        engine, _, _ = _make_engine(request_factory(trash=True), switcher, trash)

        engine.remove(str(locale_dir))

        moved = trash.trash_dir / "fr.lproj" / "sub"
        assert stat.S_IMODE(moved.stat().st_mode) == stat.S_IRWXU

    def test_blacklisted_descendant_vetoes_target(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """One protected file keeps the whole target in place."""
        trash = trash_factory()
        blacklist = BlacklistStub(locale_dir / "sub" / "a.nib")
        engine, progress, _ = _make_engine(
            request_factory(trash=True), switcher, trash, blacklist=blacklist
        )

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.SKIPPED
        assert trash.calls == []
        assert switcher.calls == []
        assert (locale_dir / "b.strings").exists()
        assert progress.files_completed == 0

    def test_blacklisted_target_vetoed(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """A protected target file is never trashed."""
        target = locale_dir / "b.strings"
        trash = trash_factory()
        engine, _, _ = _make_engine(
            request_factory(trash=True), switcher, trash, blacklist=BlacklistStub(target)
        )

        assert engine.remove(str(target)).outcome == RemovalOutcome.SKIPPED
        assert target.exists()

    def test_dry_run_touches_nothing(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """Dry-run with trashing performs no mutation and no reporting."""
        os.chmod(locale_dir / "sub", 0o750)
        trash = trash_factory()
        engine, progress, remote = _make_engine(
            request_factory(trash=True, dry_run=True), switcher, trash
        )

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.SKIPPED
        assert trash.calls == []
        assert stat.S_IMODE((locale_dir / "sub").stat().st_mode) == 0o750
        assert progress.files_completed == 0
        remote.processed.assert_not_called()

    def test_single_file_target_reported(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """Trashing a single file reports that file."""
        target = locale_dir / "b.strings"
        size = allocated_size(str(target))
        engine, progress, _ = _make_engine(request_factory(trash=True), switcher, trash_factory())

        result = engine.remove(str(target))

        assert result.outcome == RemovalOutcome.TRASHED
        assert result.sizes == {str(target): size}
        assert progress.files_completed == 1

    def test_privilege_failure_fails_target(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, request_factory, trash_factory
    ) -> None:
        """A failed identity switch fails only this target, without fallback."""
        switcher = MagicMock()
        switcher.with_user_privilege.side_effect = PrivilegeError(1, "not permitted")
        trash = trash_factory()
        engine, _, _ = _make_engine(request_factory(trash=True), switcher, trash)

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.FAILED
        assert trash.calls == []
        assert locale_dir.exists()
        assert stat.S_IMODE(locale_dir.parent.stat().st_mode) == 0o755

    def test_never_deletes_permanently(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """With trashing enabled a failed relocation leaves files on disk."""
        engine, _, _ = _make_engine(
            request_factory(trash=True), switcher, trash_factory(fail_times=2)
        )

        with patch("slimctl.cleanup.operator.remove_tree") as mock_remove:
            engine.remove(str(locale_dir))

        mock_remove.assert_not_called()
        assert (locale_dir / "sub" / "a.nib").exists()


class TestRelocationError:
    """Tests for RelocationError."""

    def test_carries_both_causes(self) -> None:
        """Both underlying errors are kept."""
        primary = PermissionError("user")
        fallback = OSError("root")

        error = RelocationError("/x", primary, fallback)

        assert error.path == "/x"
        assert error.primary is primary
        assert error.fallback is fallback
        assert "/x" in str(error)


class TestDelete:
    """Tests for permanent deletion."""

    def test_deletes_tree(self, locale_dir: Path, switcher, request_factory) -> None:  # type: ignore[no-untyped-def]
        """All entries are removed and each file is reported."""
        entries = [p for p in locale_dir.rglob("*") if not p.is_dir()]
        engine, progress, _ = _make_engine(request_factory(), switcher)

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.DELETED
        assert result.error is None
        assert not locale_dir.exists()
        assert set(result.sizes) == {str(p) for p in entries}
        assert progress.files_completed == len(entries)
        assert switcher.calls == []

    def test_directories_removed_but_not_reported(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """Directories pass the hook without counting as reclaimed files."""
        engine, progress, remote = _make_engine(request_factory(), switcher)
        sizes: dict[str, int] = {}

        assert engine.should_process(str(locale_dir / "sub"), sizes) is True
        assert sizes == {}
        assert progress.files_completed == 0
        remote.processed.assert_not_called()

    def test_reports_same_files_as_trash(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory, trash_factory
    ) -> None:
        """Deleting and trashing the same tree report the same files."""
        expected = set(_files_below(locale_dir))
        trash_engine, _, _ = _make_engine(
            request_factory(trash=True), switcher, trash=trash_factory()
        )
        trashed = trash_engine.remove(str(locale_dir))
        (locale_dir / "sub").mkdir(parents=True)
        (locale_dir / "sub" / "a.nib").write_bytes(b"a" * 100)
        (locale_dir / "b.strings").write_bytes(b"b" * 50)
        delete_engine, _, _ = _make_engine(request_factory(), switcher)

        deleted = delete_engine.remove(str(locale_dir))

        assert trashed.outcome == RemovalOutcome.TRASHED
        assert deleted.outcome == RemovalOutcome.DELETED
        assert set(trashed.sizes) == expected
        assert set(deleted.sizes) == expected

    def test_blacklisted_file_survives(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """Protected files stay, removable ones go, and no error surfaces."""
        keep = locale_dir / "b.strings"
        drop = locale_dir / "sub" / "a.nib"
        engine, _, _ = _make_engine(request_factory(), switcher, blacklist=BlacklistStub(keep))

        result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.DELETED
        assert result.error is None
        assert keep.exists()
        assert not drop.exists()
        assert str(keep) not in result.sizes

    def test_dry_run_removes_nothing(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """The removal hooks veto everything in dry-run mode."""
        engine, progress, _ = _make_engine(request_factory(dry_run=True), switcher)

        with patch("slimctl.cleanup.operator.remove_tree", wraps=remove_tree) as spy:
            result = engine.remove(str(locale_dir))

        spy.assert_called_once()
        assert result.outcome == RemovalOutcome.SKIPPED
        assert (locale_dir / "sub" / "a.nib").exists()
        assert progress.files_completed == 0

    def test_missing_target_fails(self, tmp_path: Path, switcher, request_factory) -> None:  # type: ignore[no-untyped-def]
        """Errors other than a non-empty directory are surfaced."""
        engine, _, _ = _make_engine(request_factory(), switcher)

        result = engine.remove(str(tmp_path / "gone"))

        assert result.outcome == RemovalOutcome.FAILED
        assert result.error is not None

    def test_progress_reported_before_removal(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """An entry whose removal fails has still been reported."""
        target = locale_dir / "b.strings"
        engine, progress, _ = _make_engine(request_factory(), switcher)

        with patch("slimctl.cleanup.remover.os.unlink", side_effect=PermissionError(13, "denied")):
            result = engine.remove(str(target))

        assert result.outcome == RemovalOutcome.FAILED
        assert progress.files_completed == 1
        assert target.exists()

    def test_rootless_skips_protected_entries(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """System-protected entries are kept in rootless mode."""
        keep = str(locale_dir / "sub" / "a.nib")
        engine, _, _ = _make_engine(request_factory(), switcher, rootless=True)

        with patch("slimctl.cleanup.operator.is_protected_path", side_effect=lambda p: p == keep):
            result = engine.remove(str(locale_dir))

        assert result.outcome == RemovalOutcome.DELETED
        assert Path(keep).exists()
        assert not (locale_dir / "b.strings").exists()

    def test_protection_ignored_outside_rootless(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """Without rootless mode system protection is not consulted."""
        engine, _, _ = _make_engine(request_factory(), switcher, rootless=False)

        with patch("slimctl.cleanup.operator.is_protected_path", return_value=True) as mock:
            engine.remove(str(locale_dir))

        mock.assert_not_called()
        assert not locale_dir.exists()


class TestPolicy:
    """Tests for exclusion and hook decisions."""

    def test_excluded_target_skipped(  # type: ignore[no-untyped-def]
        self, locale_dir: Path, switcher, request_factory
    ) -> None:
        """Targets under an excluded prefix are never touched."""
        request = request_factory(excludes=[str(locale_dir.parent)])
        engine, _, _ = _make_engine(request, switcher)

        assert engine.remove(str(locale_dir)).outcome == RemovalOutcome.SKIPPED
        assert locale_dir.exists()

    def test_continue_after_error_always_true(self, switcher, request_factory) -> None:  # type: ignore[no-untyped-def]
        """Per-entry errors never abort a bulk delete."""
        engine, _, _ = _make_engine(request_factory(), switcher)

        assert engine.should_continue_after_error("/x", OSError("boom")) is True
