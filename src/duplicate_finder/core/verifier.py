"""Byte-for-byte verification of duplicate candidates."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ExactVerifier:
    """Confirms that two files have exactly the same stored bytes."""

    def __init__(self, chunk_size: int = 64 * 1024):
        self.chunk_size = chunk_size

    def identical(self, path_a: Path, path_b: Path) -> bool:
        """
        Compare two files byte for byte.

        A read error on either side counts as "not identical".

        Args:
            path_a: First file
            path_b: Second file

        Returns:
            True only if both files were read and their contents match
        """
        try:
            if path_a.stat().st_size != path_b.stat().st_size:
                return False

            with open(path_a, "rb") as fa, open(path_b, "rb") as fb:
                while True:
                    chunk_a = fa.read(self.chunk_size)
                    chunk_b = fb.read(self.chunk_size)
                    if chunk_a != chunk_b:
                        return False
                    if not chunk_a:
                        return True
        except OSError as e:
            logger.warning(f"Could not compare {path_a} and {path_b}: {e}")
            return False
