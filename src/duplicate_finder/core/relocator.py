"""Collision-safe relocation of duplicates into a quarantine folder."""

import itertools
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Dict, Iterator, Optional, Set

logger = logging.getLogger(__name__)


class Relocator:
    """Moves duplicate images into a quarantine subfolder next to them."""

    def __init__(self, quarantine_dir_name: str = "duplicate"):
        """
        Initialize the relocator.

        Args:
            quarantine_dir_name: Name of the subfolder created beside each duplicate
        """
        self.quarantine_dir_name = quarantine_dir_name
        self._dir_locks: Dict[Path, threading.Lock] = {}
        self._lock = threading.Lock()

    def destination_for(self, path: Path) -> Path:
        """
        Get the preferred quarantine path for a file, ignoring collisions.

        Args:
            path: Duplicate file path

        Returns:
            <parent>/<quarantine dir>/<file name>
        """
        return path.parent / self.quarantine_dir_name / path.name

    def preview(self, path: Path, reserved: Optional[Set[Path]] = None) -> Path:
        """
        Get the path a file would be moved to, without touching the disk.

        Args:
            path: Duplicate file path
            reserved: Names already promised to earlier previews; the
                returned name is added to it

        Returns:
            First candidate name that is neither on disk nor reserved
        """
        if reserved is None:
            reserved = set()

        target = next(
            candidate
            for candidate in self._candidate_names(self.destination_for(path))
            if candidate not in reserved and not os.path.lexists(candidate)
        )
        reserved.add(target)
        return target

    def relocate(self, path: Path) -> Path:
        """
        Move a file into its quarantine folder.

        The destination name is claimed with an exclusive create before the
        move, so an existing file is never overwritten. If the move fails the
        claim is removed and the source stays where it was.

        Args:
            path: Duplicate file path

        Returns:
            Final path of the moved file

        Raises:
            OSError: If the folder cannot be created or the move fails
        """
        target_dir = path.parent / self.quarantine_dir_name

        with self._lock_for(target_dir):
            target_dir.mkdir(parents=True, exist_ok=True)
            target = self._claim(self.destination_for(path))

            try:
                shutil.move(str(path), str(target))
            except OSError:
                self._release(target)
                raise

        logger.debug(f"Moved: {path} -> {target}")
        return target

    def _candidate_names(self, path: Path) -> Iterator[Path]:
        """Yield name.ext, name_1.ext, name_2.ext, ... without end."""
        yield path
        for counter in itertools.count(1):
            yield path.with_name(f"{path.stem}_{counter}{path.suffix}")

    def _claim(self, path: Path) -> Path:
        candidates = self._candidate_names(path)
        while True:
            candidate = next(candidates)
            try:
                fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                continue
            os.close(fd)
            return candidate

    def _release(self, claimed: Path) -> None:
        try:
            claimed.unlink()
        except OSError as e:
            logger.warning(f"Could not remove placeholder {claimed}: {e}")

    def _lock_for(self, directory: Path) -> threading.Lock:
        with self._lock:
            return self._dir_locks.setdefault(directory, threading.Lock())
