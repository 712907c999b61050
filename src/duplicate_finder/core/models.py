"""Data types shared by the duplicate detection pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class DuplicatePair:
    """A confirmed (or candidate) duplicate and the original it matches."""

    original: Path
    duplicate: Path


@dataclass
class GroupingResult:
    """Output of a single grouping pass."""

    originals: List[Path] = field(default_factory=list)
    candidates: List[DuplicatePair] = field(default_factory=list)


@dataclass
class RelocationResult:
    """Outcome of relocating (or previewing) one duplicate."""

    original: Path
    duplicate: Path
    destination: Optional[Path]
    moved: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        """True if the move was attempted and raised."""
        return self.error is not None


@dataclass
class ScanReport:
    """Summary of a completed pipeline run."""

    image_count: int
    pairs: List[DuplicatePair]
    results: List[RelocationResult]
    dry_run: bool
    cancelled: bool = False

    @property
    def duplicate_count(self) -> int:
        """Number of confirmed duplicates."""
        return len(self.pairs)

    @property
    def moved_count(self) -> int:
        """Number of duplicates actually moved."""
        return sum(1 for r in self.results if r.moved)

    @property
    def failed_count(self) -> int:
        """Number of moves that failed."""
        return sum(1 for r in self.results if r.failed)
