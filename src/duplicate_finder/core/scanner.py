"""File scanner for discovering images in directories."""

import logging
import os
from pathlib import Path
from typing import List, Set

from duplicate_finder.utils.config import Config

logger = logging.getLogger(__name__)


class ImageScanner:
    """Scans a directory tree for image files."""

    def __init__(self, config: Config):
        """
        Initialize the image scanner.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.image_extensions: Set[str] = {
            ext.lower() for ext in config.get("image_extensions", [])
        }
        self.excluded_dirs: Set[str] = set(config.excluded_dir_names())

    def scan_directory(
        self, directory: Path, recursive: bool = True, skip_hidden: bool = True
    ) -> List[Path]:
        """
        Scan a directory for image files.

        Files inside an excluded directory (by default any folder named
        'duplicate' or 'duplicates') are never returned.

        Args:
            directory: Directory path to scan
            recursive: Recursively scan subdirectories
            skip_hidden: Skip hidden files and folders

        Returns:
            Absolute image paths, sorted so the same tree always scans in
            the same order

        Raises:
            FileNotFoundError: If directory doesn't exist
            NotADirectoryError: If the path is not a directory
        """
        directory = directory.resolve()

        if not directory.exists():
            raise FileNotFoundError(f"Directory not found: {directory}")

        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        logger.info(f"Scanning directory: {directory}")

        image_files = sorted(
            path
            for path in self._discover_files(directory, recursive, skip_hidden)
            if self.is_image_file(path)
        )

        logger.info(f"Found {len(image_files)} image files")
        return image_files

    def is_image_file(self, file_path: Path) -> bool:
        """
        Check if a file has a supported image extension (case-insensitive).

        Args:
            file_path: File path to check

        Returns:
            True if file is a supported image
        """
        return file_path.suffix.lower() in self.image_extensions

    def _discover_files(
        self, directory: Path, recursive: bool, skip_hidden: bool
    ) -> List[Path]:
        """
        Discover all files in a directory.

        Args:
            directory: Directory to scan
            recursive: Scan subdirectories
            skip_hidden: Skip hidden files/folders

        Returns:
            List of all file paths
        """
        files: List[Path] = []

        def on_error(error: OSError) -> None:
            logger.warning(f"Permission denied accessing directory: {error}")

        if recursive:
            for root, dirs, filenames in os.walk(directory, onerror=on_error):
                root_path = Path(root)

                dirs[:] = [
                    d
                    for d in dirs
                    if d.lower() not in self.excluded_dirs
                    and not (skip_hidden and d.startswith("."))
                    # Skip symlinks to avoid loops
                    and not (root_path / d).is_symlink()
                ]

                for filename in filenames:
                    if skip_hidden and filename.startswith("."):
                        continue

                    file_path = root_path / filename
                    if file_path.is_symlink():
                        continue

                    files.append(file_path)
        else:
            try:
                for item in directory.iterdir():
                    if skip_hidden and item.name.startswith("."):
                        continue
                    if item.is_file() and not item.is_symlink():
                        files.append(item)
            except PermissionError as e:
                on_error(e)

        return files
