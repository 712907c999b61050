"""Command-line interface for duplicate-finder."""

import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.markup import escape

from duplicate_finder import __version__
from duplicate_finder.core.finder import DuplicateFinder
from duplicate_finder.core.fingerprint import FINGERPRINT_METHODS
from duplicate_finder.core.models import RelocationResult
from duplicate_finder.core.scanner import ImageScanner
from duplicate_finder.utils.config import Config
from duplicate_finder.utils.logger import setup_logger

console = Console(soft_wrap=True, highlight=False, emoji=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False, emoji=False)


@click.command()
@click.version_option(version=__version__, prog_name="duplicate-finder")
@click.argument("directory", required=False, type=click.Path(path_type=Path))
@click.option(
    "--output-dir",
    "-o",
    default="duplicate",
    show_default=True,
    help="Name of the duplicate folder created next to each duplicate",
)
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="Show what would be moved without actually moving files",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Threads used for fingerprinting",
)
@click.option(
    "--fingerprint",
    "fingerprint_method",
    type=click.Choice(FINGERPRINT_METHODS, case_sensitive=False),
    default="auto",
    show_default=True,
    help="Fingerprint method (auto uses pixels when images can be decoded)",
)
@click.option(
    "--show-progress/--no-progress",
    default=True,
    help="Show progress bars",
)
def cli(
    directory: Optional[Path],
    output_dir: str,
    dry_run: bool,
    verbose: bool,
    workers: int,
    fingerprint_method: str,
    show_progress: bool,
) -> None:
    """
    Find duplicate images in DIRECTORY and move them to a duplicate folder.

    The first copy of each image (in sorted path order) stays where it is.
    Every byte-identical copy found after it is moved into a subfolder named
    by --output-dir beside it.

    Example:
        duplicate-finder ~/Pictures --dry-run
    """
    setup_logger("duplicate_finder", level=logging.DEBUG if verbose else logging.WARNING)

    if directory is None:
        err_console.print("Error: Missing argument 'DIRECTORY'.")
        sys.exit(1)

    target_dir = directory.resolve()
    if not target_dir.exists():
        err_console.print(f"Error: Directory {escape(str(target_dir))} does not exist.")
        sys.exit(1)
    if not target_dir.is_dir():
        err_console.print(f"Error: {escape(str(target_dir))} is not a directory.")
        sys.exit(1)

    config = Config(
        {
            "quarantine_dir": output_dir,
            "fingerprint": {"method": fingerprint_method.lower(), "workers": workers},
        }
    )

    if verbose:
        console.print(f"Scanning directory: {escape(str(target_dir))}")
        console.print(f"Duplicate folder: {escape(output_dir)}")
        console.print(f"Dry run: {'Yes' if dry_run else 'No'}")
        console.print()

    try:
        with _cancel_on_interrupt() as cancel_event:
            _find_and_relocate(config, target_dir, dry_run, show_progress, cancel_event)
    except Exception as e:
        err_console.print(f"Error: {escape(str(e))}")
        sys.exit(1)


def _find_and_relocate(
    config: Config,
    target_dir: Path,
    dry_run: bool,
    show_progress: bool,
    cancel_event: threading.Event,
) -> None:
    """Scan, detect and relocate, printing the report as it goes."""
    console.print("Finding image files...")
    scanner = ImageScanner(config)
    image_files = scanner.scan_directory(
        target_dir, recursive=True, skip_hidden=config.get("skip_hidden", True)
    )

    if not image_files:
        console.print("No image files found in the specified directory.")
        return

    console.print(f"Found {len(image_files)} image files.")
    console.print("Comparing images for duplicates...")

    finder = DuplicateFinder(config, show_progress=show_progress)
    duplicates = finder.find_duplicates(image_files, cancel_event=cancel_event)

    if cancel_event.is_set():
        console.print("Cancelled before any files were moved.")
        return

    if not duplicates:
        console.print("No duplicate images found.")
        return

    console.print(f"Found {len(duplicates)} duplicate image(s).")
    console.print()

    processed = 0
    failed = 0
    for result in finder.relocate_duplicates(duplicates, dry_run, cancel_event):
        _display_result(result, dry_run)
        processed += 1
        if result.failed:
            failed += 1

    if cancel_event.is_set():
        console.print(f"Cancelled. {processed} of {len(duplicates)} duplicate(s) processed.")
        return

    if failed:
        err_console.print(f"{failed} duplicate(s) could not be moved.")

    quarantine = escape(config.get_quarantine_dir())
    if dry_run:
        console.print(f"Dry run completed. {len(duplicates)} duplicate(s) would be moved.")
    else:
        console.print(
            f"Process completed. {len(duplicates)} duplicate(s) moved to {quarantine} folder."
        )


def _display_result(result: RelocationResult, dry_run: bool) -> None:
    """Print one duplicate and what happened to it."""
    console.print("Duplicate found:")
    console.print(f"  Original: {escape(str(result.original))}")
    console.print(f"  Duplicate: {escape(str(result.duplicate))}")

    if dry_run:
        console.print(f"  Would move to: {escape(str(result.destination))}")
    elif result.moved:
        console.print(f"  Moved to: {escape(str(result.destination))}")
    else:
        err_console.print(f"  Error moving file: {escape(str(result.error))}")
    console.print()


@contextmanager
def _cancel_on_interrupt() -> Iterator[threading.Event]:
    """
    Turn Ctrl+C into a cancellation request checked between files.

    A move that is already running always finishes first.
    """
    cancel_event = threading.Event()

    if threading.current_thread() is not threading.main_thread():
        yield cancel_event
        return

    def request_cancel(signum, frame):
        err_console.print("Interrupted, finishing the current file...")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, request_cancel)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
