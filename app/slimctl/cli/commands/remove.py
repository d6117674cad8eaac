"""Removal command.

Removes or trashes cleanup targets on behalf of a user, protecting the
sealed resources of the given bundles.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from slimctl.cleanup.models import RemovalOutcome, RemovalResult
from slimctl.cleanup.privilege import PrivilegeError
from slimctl.cleanup.progress import FileProgress
from slimctl.cleanup.protected import detect_rootless
from slimctl.cleanup.session import CleanupSession
from slimctl.core.config import RemovalRequest, RequestConfigError, load_request
from slimctl.utils.formatting import (
    console,
    create_result_table,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)


class ConsoleObserver:
    """Prints every processed file to the console."""

    def processed(self, file: str, size: int, app_name: str | None) -> None:
        label = f" [muted]({app_name})[/]" if app_name else ""
        console.print(f"[info]{format_size(size):>9}[/] {file}{label}")


def default_uid() -> int:
    """User that invoked the helper, seen through sudo if necessary."""
    sudo_uid = os.environ.get("SUDO_UID")
    if sudo_uid and sudo_uid.isdigit():
        return int(sudo_uid)
    return os.getuid()


def remove(
    ctx: typer.Context,
    targets: Annotated[
        list[Path],
        typer.Argument(help="Top-level paths to remove."),
    ],
    request_path: Annotated[
        Path | None,
        typer.Option("--request", "-r", help="Load the removal request from a TOML file."),
    ] = None,
    uid: Annotated[
        int | None,
        typer.Option("--uid", "-u", min=0, help="Acting user id (default: invoking user)."),
    ] = None,
    trash: Annotated[
        bool,
        typer.Option("--trash", "-t", help="Move to trash instead of deleting."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be removed."),
    ] = False,
    bundles: Annotated[
        list[Path] | None,
        typer.Option("--bundle", "-b", help="Bundle whose sealed files must be kept."),
    ] = None,
    excludes: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Path prefix that must never be touched."),
    ] = None,
    rootless: Annotated[
        bool | None,
        typer.Option(
            "--rootless/--no-rootless",
            help="Skip system-protected paths (default: detect).",
        ),
    ] = None,
) -> None:
    """Remove localization or architecture resources."""
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))

    try:
        request = load_request(request_path) if request_path else RemovalRequest(uid=default_uid())
    except RequestConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if uid is not None:
        request.uid = uid
    request.trash = request.trash or trash
    request.dry_run = request.dry_run or dry_run
    request.excludes.extend(excludes or [])

    progress = FileProgress()
    try:
        session = CleanupSession(
            request,
            progress=progress,
            remote=ConsoleObserver() if verbose else None,
            rootless=detect_rootless() if rootless is None else rootless,
        )
    except PrivilegeError as e:
        print_error(f"Cannot switch to user {request.uid}: {e}")
        raise typer.Exit(code=1) from e

    for bundle in bundles or []:
        protected = session.add_code_resources(str(bundle.absolute()))
        if not protected:
            print_warning(f"No sealed resources found in {bundle}")

    results = session.process(str(target.absolute()) for target in targets)
    _print_results(results, progress, request.dry_run)


def _print_results(results: list[RemovalResult], progress: FileProgress, dry_run: bool) -> None:
    """Display removal results and a summary line."""
    console.print(create_result_table(results))

    failed = sum(1 for r in results if r.outcome == RemovalOutcome.FAILED)
    reclaimed = format_size(progress.completed_unit_count)

    if dry_run:
        print_info("Dry-run: nothing was removed.")
    elif failed:
        print_warning(f"{failed} of {len(results)} target(s) failed; {reclaimed} reclaimed.")
    else:
        print_success(f"{progress.files_completed} file(s) processed, {reclaimed} reclaimed.")
