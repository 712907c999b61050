"""Grouping of candidate files by fingerprint."""

import logging
from pathlib import Path
from typing import Dict, Iterable, Set

from duplicate_finder.core.fingerprint import FingerprintEngine
from duplicate_finder.core.models import DuplicatePair, GroupingResult

logger = logging.getLogger(__name__)


class DuplicateGrouper:
    """
    Splits an ordered list of files into originals and duplicate candidates.

    The first file seen for a fingerprint is that bucket's original; every
    later file with the same fingerprint becomes a candidate paired with it.
    Which file counts as the original therefore depends on input order, so
    callers that need stable results across platforms should sort the paths
    first.

    Paths that resolve to a file already seen are ignored.
    """

    def __init__(self, engine: FingerprintEngine):
        self.engine = engine

    def group(self, paths: Iterable[Path]) -> GroupingResult:
        """
        Group files by fingerprint in a single pass.

        Args:
            paths: Files in the order that decides which copy is kept

        Returns:
            Originals and candidate pairs, both in input order
        """
        buckets: Dict[str, Path] = {}
        seen: Set[Path] = set()
        result = GroupingResult()

        for path in paths:
            # A file listed twice (or via a symlink) must not pair with itself
            key = path.resolve()
            if key in seen:
                logger.debug(f"Skipping repeated path {path}")
                continue
            seen.add(key)

            digest = self.engine.fingerprint(path)
            if digest is None:
                continue

            original = buckets.get(digest)
            if original is None:
                buckets[digest] = path
                result.originals.append(path)
            else:
                result.candidates.append(DuplicatePair(original=original, duplicate=path))

        logger.debug(
            f"Grouped into {len(result.originals)} unique fingerprints, "
            f"{len(result.candidates)} candidates"
        )
        return result
