"""Duplicate detection pipeline: fingerprint, group, verify, relocate."""

import logging
import threading
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

from duplicate_finder.core.fingerprint import (
    FingerprintCache,
    FingerprintEngine,
    FingerprintProvider,
    select_provider,
)
from duplicate_finder.core.grouper import DuplicateGrouper
from duplicate_finder.core.models import DuplicatePair, RelocationResult, ScanReport
from duplicate_finder.core.relocator import Relocator
from duplicate_finder.core.verifier import ExactVerifier
from duplicate_finder.utils.config import Config

logger = logging.getLogger(__name__)


class DuplicateFinder:
    """Finds byte-identical images and moves the extra copies aside."""

    def __init__(
        self,
        config: Config,
        provider: Optional[FingerprintProvider] = None,
        show_progress: bool = False,
    ):
        """
        Initialize the duplicate finder.

        Args:
            config: Configuration instance
            provider: Fingerprint provider (selected from config if omitted)
            show_progress: Show progress while fingerprinting
        """
        self.config = config
        self.show_progress = show_progress
        self.provider = provider or select_provider(
            config.get("fingerprint.method", "auto"),
            grid_size=config.get("fingerprint.grid_size", 8),
        )
        self.verifier = ExactVerifier(chunk_size=config.get("verify.chunk_size", 64 * 1024))
        self.relocator = Relocator(config.get_quarantine_dir())

    def new_engine(self) -> FingerprintEngine:
        """Create a fingerprint engine with a fresh cache for one run."""
        return FingerprintEngine(
            self.provider, FingerprintCache(), show_progress=self.show_progress
        )

    def find_duplicates(
        self,
        image_paths: List[Path],
        engine: Optional[FingerprintEngine] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[DuplicatePair]:
        """
        Find confirmed duplicates among a list of images.

        The earliest path in the list is kept as the original for each
        group of identical files.

        Args:
            image_paths: Images in the order that decides which copy is kept
            engine: Fingerprint engine to use (a fresh one if omitted)
            cancel_event: Stops the search between files once set

        Returns:
            Confirmed duplicate pairs in input order
        """
        if not image_paths:
            logger.warning("No images provided for duplicate detection")
            return []

        engine = engine or self.new_engine()
        logger.info(f"Finding duplicates in {len(image_paths)} images")

        engine.fingerprint_many(
            image_paths,
            workers=self.config.get("fingerprint.workers", 1),
            cancel_event=cancel_event,
        )
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Cancelled while fingerprinting")
            return []

        grouping = DuplicateGrouper(engine).group(image_paths)

        duplicates: List[DuplicatePair] = []
        for pair in grouping.candidates:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Cancelled while verifying candidates")
                break
            if self.verifier.identical(pair.original, pair.duplicate):
                duplicates.append(pair)
            else:
                logger.debug(
                    f"Fingerprint match but different bytes: "
                    f"{pair.original} / {pair.duplicate}"
                )

        logger.info(f"Found {len(duplicates)} duplicates")
        return duplicates

    def relocate_duplicates(
        self,
        pairs: Iterable[DuplicatePair],
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[RelocationResult]:
        """
        Move each duplicate into its quarantine folder, or preview the move.

        A failed move is reported in its result and does not stop the rest.
        Cancellation is only checked between files.

        Args:
            pairs: Confirmed duplicate pairs
            dry_run: Only compute destinations, do not touch the disk
            cancel_event: Stops processing between files once set

        Yields:
            One result per processed pair
        """
        # Names promised to earlier previews in this dry run
        reserved: Set[Path] = set()

        for pair in pairs:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Cancelled before relocating remaining duplicates")
                return

            if dry_run:
                yield RelocationResult(
                    original=pair.original,
                    duplicate=pair.duplicate,
                    destination=self.relocator.preview(pair.duplicate, reserved),
                )
                continue

            try:
                destination = self.relocator.relocate(pair.duplicate)
            except OSError as e:
                logger.error(f"Failed to move {pair.duplicate}: {e}")
                yield RelocationResult(
                    original=pair.original,
                    duplicate=pair.duplicate,
                    destination=self.relocator.destination_for(pair.duplicate),
                    error=str(e),
                )
                continue

            yield RelocationResult(
                original=pair.original,
                duplicate=pair.duplicate,
                destination=destination,
                moved=True,
            )

    def run(
        self,
        image_paths: List[Path],
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanReport:
        """
        Run the whole pipeline over a list of images.

        Args:
            image_paths: Images in the order that decides which copy is kept
            dry_run: Report what would move without moving anything
            cancel_event: Cooperative cancellation flag

        Returns:
            Report of the run
        """
        pairs = self.find_duplicates(image_paths, cancel_event=cancel_event)
        results = list(self.relocate_duplicates(pairs, dry_run, cancel_event))

        return ScanReport(
            image_count=len(image_paths),
            pairs=pairs,
            results=results,
            dry_run=dry_run,
            cancelled=cancel_event is not None and cancel_event.is_set(),
        )
